"""
評価サービスモジュール
アイデア本文を評価サービスに送り、スコア一式を受け取る
"""
from typing import Optional

import httpx
import pydantic

from ideavault.config import EVALUATION_TIMEOUT, IDEAVAULT_API_URL
from ideavault.errors import EvaluationError
from ideavault.models import Category, EvaluationResult, Idea


class EvaluationGateway:
    """
    Evaluation Service へのリクエストの薄いラッパー
    リトライはしない（再評価の方針はオーケストレーター側）
    """

    def __init__(
        self,
        base_url: str = IDEAVAULT_API_URL,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = EVALUATION_TIMEOUT,
    ):
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def evaluate(
        self,
        idea_id: str,
        title: str,
        description: str,
        category: Optional[str] = None,
        row_number: Optional[int] = None,
    ) -> EvaluationResult:
        """
        アイデアを評価

        Returns:
            スコア4つが揃ったEvaluationResult

        Raises:
            EvaluationError: 通信失敗・非2xx・不正なレスポンス・スコア欠落
        """
        if isinstance(category, Category):
            category = category.value
        body = {
            "id": idea_id,
            "rowNumber": row_number,
            "title": title,
            "description": description,
            "category": category or "",
        }
        try:
            resp = await self.client.post("/evaluate", json=body)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            print(f"[Evaluate] {idea_id} failed: HTTP {e.response.status_code}")
            raise EvaluationError(
                f"Evaluation Service returned HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            print(f"[Evaluate] {idea_id} failed: {e!r}")
            raise EvaluationError(f"Evaluation Service unreachable: {e}") from e
        except ValueError as e:
            print(f"[Evaluate] {idea_id} returned invalid JSON: {e}")
            raise EvaluationError("Evaluation Service returned invalid JSON") from e

        if not isinstance(data, dict):
            raise EvaluationError("Evaluation Service returned a non-object payload")
        try:
            result = EvaluationResult.model_validate(data)
        except pydantic.ValidationError as e:
            print(f"[Evaluate] {idea_id} returned an invalid result: {e}")
            raise EvaluationError(f"Invalid evaluation payload: {e}") from e
        if not result.has_scores():
            print(f"[Evaluate] {idea_id} returned incomplete scores")
            raise EvaluationError("Evaluation payload is missing scores")
        return result

    async def evaluate_idea(self, idea: Idea) -> EvaluationResult:
        return await self.evaluate(
            idea.id, idea.title, idea.description, idea.category, row_number=idea.row_number,
        )

    async def aclose(self) -> None:
        await self.client.aclose()
