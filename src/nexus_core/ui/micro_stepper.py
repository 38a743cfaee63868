# nexus_core/ui/micro_stepper.py
"""
マイクロステップ表示カウンタ。

詳細ビューで、確定済みのステージ遷移を何段階に分けて見せるかを管理します。
エンジンの状態には一切影響せず、どこまで表示するかだけを決めます。
"""
from typing import Optional

from nexus_core.core.snapshot import Snapshot
from nexus_core.debugger.debugger import Simulator

# @intent:responsibility 最後に確定したステージのマイクロステップ表示位置を管理します。
class MicroStepper:
    """
    有効時、advance() はまず直前のステージを1マイクロステップずつ表示し、
    全て表示し終えてから次のステージをエンジンに確定させます。
    無効時は advance() が常に1ステージ進めます。
    """
    def __init__(self, simulator: Simulator, enabled: bool = False):
        self._simulator = simulator
        self._enabled = enabled
        self._position = 0

    @property
    def enabled(self) -> bool:
        return self._enabled

    # @intent:responsibility 詳細ビュー（マイクロステップ）の有効・無効を切り替えます。
    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled
        self._position = 0

    @property
    def position(self) -> int:
        """現在表示しているマイクロステップ（0始まり）。"""
        return self._position

    def _current_limit(self, snapshot: Optional[Snapshot]) -> int:
        if snapshot is None:
            return 0
        return max(snapshot.micro_step_count - 1, 0)

    # @intent:responsibility 直前に確定したステージを全て表示し終えたかを返します。
    def is_stage_revealed(self) -> bool:
        if not self._enabled:
            return True
        return self._position >= self._current_limit(self._simulator.get_last_snapshot())

    # @intent:responsibility 表示を1段階進めます。必要な場合のみエンジンを1ステージ進めます。
    def advance(self) -> Snapshot:
        last = self._simulator.get_last_snapshot()
        if self._enabled and last is not None and not self.is_stage_revealed():
            self._position += 1
            return last

        self._position = 0
        return self._simulator.step()

    def reset(self) -> None:
        self._position = 0
