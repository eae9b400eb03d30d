"""
評価オーケストレーターモジュール
いつ評価を依頼するかを決め、アイデアごとのステータス遷移と一括再評価を担う
"""
import asyncio
import traceback
from typing import Dict, Iterable, List, Optional, Set

from ideavault.errors import EvaluationError
from ideavault.models import EvaluationResult, Idea, IdeaStatus
from ideavault.registry import IdeaRegistry
from ideavault.services.evaluation_service import EvaluationGateway

# 評価を依頼できるステータス
ELIGIBLE_STATUSES = (IdeaStatus.SUBMITTED, IdeaStatus.ERROR)


class EvaluationOrchestrator:
    """
    アイデアごとの状態遷移

        submitted -> evaluating -> evaluated | error
        error -> evaluating（再評価）

    evaluated / error は明示的な再評価まで変化しない。
    """

    def __init__(self, registry: IdeaRegistry, gateway: EvaluationGateway):
        self.registry = registry
        self.gateway = gateway
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    def claim(self, idea_id: str, force: bool = False) -> Optional[Idea]:
        """
        アイデアを evaluating に切り替える（同期処理）

        Args:
            idea_id: 対象のid
            force: evaluated のアイデアも再評価の対象にする

        Returns:
            切り替えたIdea。存在しない・評価中・評価済みの場合は None
        """
        record = self.registry.get(idea_id)
        if record is None:
            print(f"[Orchestrator] {idea_id} not in registry, skipped")
            return None
        if record.status == IdeaStatus.EVALUATING:
            return None
        if record.status == IdeaStatus.EVALUATED and not force:
            return None
        return self.registry.mark_evaluating(idea_id)

    async def run_evaluation(self, idea_id: str) -> Optional[IdeaStatus]:
        """
        claim 済みのアイデアを評価し、結果をレジストリに反映する

        Returns:
            反映後のステータス。レコードが消えていた場合は None
        """
        record = self.registry.get(idea_id)
        if record is None:
            print(f"[Orchestrator] {idea_id} disappeared before evaluation")
            return None

        try:
            result = await self.gateway.evaluate_idea(record)
            outcome = IdeaStatus.EVALUATED
        except EvaluationError as e:
            print(f"[Orchestrator] evaluation failed for {idea_id}: {e}")
            result = EvaluationResult.failure()
            outcome = IdeaStatus.ERROR
        except Exception as e:
            # evaluating のまま残さない
            print(f"[Orchestrator] unexpected error for {idea_id}: {e}")
            print(f"[Orchestrator] Traceback: {traceback.format_exc()}")
            result = EvaluationResult.failure()
            outcome = IdeaStatus.ERROR

        if not self.registry.merge_evaluation(idea_id, result, outcome):
            return None
        return outcome

    async def evaluate(self, idea_id: str, force: bool = False) -> Optional[IdeaStatus]:
        """claim してから評価する。対象外なら None"""
        if self.claim(idea_id, force=force) is None:
            return None
        return await self.run_evaluation(idea_id)

    def schedule(self, idea_id: str) -> Optional[asyncio.Task]:
        """
        登録直後の評価をバックグラウンドで開始する

        ステータスはこの呼び出しの中で evaluating になる。
        """
        if self.claim(idea_id) is None:
            return None
        task = asyncio.create_task(self.run_evaluation(idea_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def select_candidates(self) -> List[str]:
        """現時点で評価が必要なアイデア（submitted / error）のid"""
        return self.registry.ids_with_status(*ELIGIBLE_STATUSES)

    async def run_batch(self, candidates: Iterable[str]) -> Dict[str, int]:
        """
        候補を1件ずつ順番に評価する

        同時に投げる評価リクエストは常に1件。1件の失敗で中断せず次へ進む。
        選定後に評価中・評価済みになった候補はスキップ。

        Returns:
            {"evaluated": n, "error": n, "skipped": n}
        """
        counts = {"evaluated": 0, "error": 0, "skipped": 0}
        for idea_id in list(candidates):
            outcome = await self.evaluate(idea_id)
            if outcome is None:
                counts["skipped"] += 1
            else:
                counts[outcome.value] += 1
        print(f"[Orchestrator] batch finished: {counts}")
        return counts

    async def reevaluate_all(self) -> Dict[str, int]:
        """未評価・失敗のアイデアをすべて再評価（候補は呼び出し時点で確定）"""
        candidates = self.select_candidates()
        if not candidates:
            return {"evaluated": 0, "error": 0, "skipped": 0}
        print(f"[Orchestrator] re-evaluating {len(candidates)} idea(s)")
        return await self.run_batch(candidates)

    async def drain(self) -> None:
        """バックグラウンドの評価がすべて終わるまで待つ"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
