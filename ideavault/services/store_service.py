"""
Record Storeサービスモジュール
アイデアの一覧取得と登録を提供
"""
from typing import List, Optional

import httpx
import pydantic

from ideavault.config import IDEAVAULT_API_URL, REQUEST_TIMEOUT
from ideavault.errors import TransportError, ValidationError
from ideavault.models import CATEGORIES, Category, Idea, IdeaStatus


def _parse_idea(item) -> Idea:
    """ストアのJSON 1件をIdeaに変換（ステータスは評価から決め直す）"""
    if not isinstance(item, dict):
        raise TransportError(f"Unexpected idea payload: {item!r}")
    data = {k: v for k, v in item.items() if k != "status"}
    category = data.get("category")
    if category not in (None, "") and category not in CATEGORIES:
        # 一覧では未知のカテゴリを弾かずにカテゴリなしとして扱う
        print(f"[Store] unknown category {category!r} on idea {data.get('id')!r}, treated as none")
        data["category"] = None
    try:
        return Idea.model_validate(data).with_derived_status()
    except pydantic.ValidationError as e:
        raise TransportError(f"Invalid idea payload: {e}") from e


class StoreGateway:
    """Record Store へのリクエストの薄いラッパー"""

    def __init__(
        self,
        base_url: str = IDEAVAULT_API_URL,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def _request(self, method: str, path: str, **kwargs):
        try:
            resp = await self.client.request(method, path, **kwargs)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as e:
            print(f"[Store] {method} {path} failed: HTTP {e.response.status_code}")
            raise TransportError(
                f"Record Store returned HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            print(f"[Store] {method} {path} failed: {e!r}")
            raise TransportError(f"Record Store unreachable: {e}") from e
        except ValueError as e:
            # JSONデコード失敗
            print(f"[Store] {method} {path} returned invalid JSON: {e}")
            raise TransportError("Record Store returned invalid JSON") from e

    async def list_ideas(self) -> List[Idea]:
        """
        アイデア一覧を取得

        Returns:
            Ideaのリスト（ストアの並び順）

        Raises:
            TransportError: 接続失敗・非2xx・不正なレスポンス（部分的な結果は返さない）
        """
        data = await self._request("GET", "/ideas")
        if not isinstance(data, list):
            raise TransportError("Record Store returned a non-list payload")
        return [_parse_idea(item) for item in data]

    async def create_idea(self, title: str, description: str, category: Optional[str] = None) -> Idea:
        """
        アイデアを登録

        Args:
            title: タイトル（必須）
            description: 説明（必須）
            category: カテゴリ（任意、CATEGORIESのいずれか）

        Returns:
            ストアが id / timestamp を採番したIdea（status=submitted、評価なし）

        Raises:
            ValidationError: 必須項目の欠落（通信前に検出）
            TransportError: 通信失敗・不正なレスポンス
        """
        if not (title or "").strip() or not (description or "").strip():
            raise ValidationError("Please fill in both title and description")
        if isinstance(category, Category):
            category = category.value
        if category and category not in CATEGORIES:
            raise ValidationError(f"Unknown category: {category}")

        data = await self._request("POST", "/ideas", json={
            "title": title,
            "description": description,
            "category": category or "",
        })
        idea = _parse_idea(data)
        # 作成直後は必ず未評価
        return idea.model_copy(update={"status": IdeaStatus.SUBMITTED, "evaluation": None})

    async def aclose(self) -> None:
        await self.client.aclose()
