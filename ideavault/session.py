"""
クライアントセッション
ゲートウェイ・レジストリ・オーケストレーター・表示状態と、
画面全体のフラグ（エラーバナー、読み込み中、投稿中、投稿完了）をまとめて持つ
"""
import time
from typing import Dict, Optional

from ideavault.config import IDEAVAULT_API_URL, SUCCESS_NOTICE_SECONDS
from ideavault.errors import TransportError
from ideavault.models import Idea
from ideavault.registry import IdeaRegistry
from ideavault.services.evaluation_service import EvaluationGateway
from ideavault.services.orchestrator import EvaluationOrchestrator
from ideavault.services.store_service import StoreGateway
from ideavault.view_state import ViewState

LOAD_FAILED_MESSAGE = "Could not connect to server. Please try again later."
SUBMIT_FAILED_MESSAGE = "Failed to submit idea. Please check your connection and try again."
SUCCESS_MESSAGE = "Your idea has been submitted anonymously!"


class IdeaVaultSession:
    def __init__(
        self,
        store: StoreGateway,
        evaluator: EvaluationGateway,
        registry: Optional[IdeaRegistry] = None,
        view: Optional[ViewState] = None,
        success_notice_seconds: float = SUCCESS_NOTICE_SECONDS,
    ):
        self.store = store
        self.evaluator = evaluator
        self.registry = registry or IdeaRegistry()
        self.orchestrator = EvaluationOrchestrator(self.registry, evaluator)
        self.view = view or ViewState()
        self.success_notice_seconds = success_notice_seconds

        self.error: Optional[str] = None
        self.is_loading = False
        self.is_submitting = False
        self._success_until = 0.0

    @classmethod
    def from_config(cls) -> "IdeaVaultSession":
        return cls(StoreGateway(IDEAVAULT_API_URL), EvaluationGateway(IDEAVAULT_API_URL))

    @property
    def show_success(self) -> bool:
        return time.monotonic() < self._success_until

    def dismiss_error(self) -> None:
        self.error = None

    async def load_ideas(self) -> bool:
        """
        一覧を再読み込みしてレジストリにマージ

        Returns:
            成功した場合はTrue。失敗時はバナーを出し、既存の状態は保持
        """
        self.is_loading = True
        self.error = None
        try:
            records = await self.store.list_ideas()
        except TransportError as e:
            print(f"[Session] Error loading ideas: {e}")
            self.error = LOAD_FAILED_MESSAGE
            return False
        finally:
            self.is_loading = False
        self.registry.replace_all(records)
        return True

    async def create(self, title: str, description: str, category: Optional[str] = None) -> Optional[Idea]:
        """
        アイデアを登録してレジストリの先頭に追加（評価はしない）

        Raises:
            ValidationError: 必須項目の欠落（通信しない）

        Returns:
            登録したIdea。通信失敗時は None（バナー表示）
        """
        self.is_submitting = True
        self.error = None
        try:
            record = await self.store.create_idea(title, description, category)
        except TransportError as e:
            print(f"[Session] Error submitting idea: {e}")
            self.error = SUBMIT_FAILED_MESSAGE
            return None
        finally:
            self.is_submitting = False
        if record.id in self.registry:
            # 登録の応答より先に再読み込みで取り込まれていた場合はそちらを使う
            print(f"[Session] {record.id} already loaded by a reload, keeping registry record")
            record = self.registry.get(record.id)
        else:
            self.registry.insert_new(record)
        self._success_until = time.monotonic() + self.success_notice_seconds
        return record

    async def submit(self, title: str, description: str, category: Optional[str] = None) -> Optional[Idea]:
        """登録してから評価をバックグラウンドで開始"""
        record = await self.create(title, description, category)
        if record is not None:
            self.orchestrator.schedule(record.id)
        return record

    async def reevaluate_all(self) -> Dict[str, int]:
        return await self.orchestrator.reevaluate_all()

    async def switch_tab(self, tab: str) -> None:
        """タブ切り替え。一覧タブに移ったら再読み込み"""
        self.view.set_tab(tab)
        if tab == "ideas":
            await self.load_ideas()

    def toggle(self, idea_id: str) -> bool:
        return self.view.toggle(idea_id)

    def set_view_mode(self, view_mode: str) -> None:
        self.view.set_view_mode(view_mode)

    def set_sort_order(self, sort_order: str) -> None:
        self.view.set_sort_order(sort_order)

    def snapshot(self) -> dict:
        """画面に出す内容（JSONにそのまま変換できる形）"""
        records = self.registry.snapshot()
        return {
            "tab": self.view.tab,
            "view_mode": self.view.view_mode,
            "sort_order": self.view.sort_order,
            "error": self.error,
            "is_loading": self.is_loading,
            "is_submitting": self.is_submitting,
            "success": SUCCESS_MESSAGE if self.show_success else None,
            "count": len(records),
            "ideas": self.view.derive(records),
        }

    async def aclose(self) -> None:
        await self.orchestrator.drain()
        await self.store.aclose()
        await self.evaluator.aclose()
