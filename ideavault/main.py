"""
IdeaVault クライアントAPI
UIシェルから呼ばれるローカルのJSONエンドポイント。表示状態をJSONで返す
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException
from pydantic import BaseModel

from ideavault.errors import ValidationError
from ideavault.session import IdeaVaultSession

# =========================
# セッション管理
# =========================
_session: Optional[IdeaVaultSession] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """アプリ停止時に評価の完了を待ってから接続を閉じる"""
    global _session
    yield
    if _session is not None:
        try:
            await _session.aclose()
        except Exception as e:
            print(f"[Session] Error closing session: {e}")
        _session = None


app = FastAPI(title="IdeaVault client", lifespan=lifespan)


class IdeaForm(BaseModel):
    """投稿フォーム"""
    title: str = ""
    description: str = ""
    category: str = ""


def get_session() -> IdeaVaultSession:
    """設定からセッションを生成（初回のみ）"""
    global _session
    if _session is None:
        _session = IdeaVaultSession.from_config()
    return _session


# =========================
# FastAPIエンドポイント
# =========================
@app.get("/health")
def health():
    return {"ok": True}


@app.get("/state")
async def state(session: IdeaVaultSession = Depends(get_session)):
    return session.snapshot()


@app.post("/ideas")
async def submit_idea(
    form: IdeaForm,
    background: BackgroundTasks,
    session: IdeaVaultSession = Depends(get_session),
):
    try:
        record = await session.create(form.title, form.description, form.category)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if record is None:
        return {"accepted": False, "error": session.error}

    # 追加が見える状態になってから評価を開始（レスポンス後に実行）
    if session.orchestrator.claim(record.id) is not None:
        background.add_task(session.orchestrator.run_evaluation, record.id)
    return {"accepted": True, "idea": session.view.card(session.registry.get(record.id))}


@app.post("/ideas/reload")
async def reload_ideas(session: IdeaVaultSession = Depends(get_session)):
    await session.load_ideas()
    return session.snapshot()


@app.post("/ideas/{idea_id}/toggle")
async def toggle_idea(idea_id: str, session: IdeaVaultSession = Depends(get_session)):
    session.toggle(idea_id)
    return session.snapshot()


@app.post("/reevaluate")
async def reevaluate_all(background: BackgroundTasks, session: IdeaVaultSession = Depends(get_session)):
    # 候補はリクエスト時点で確定
    candidates = session.orchestrator.select_candidates()
    if candidates:
        background.add_task(session.orchestrator.run_batch, candidates)
    return {"accepted": True, "candidates": candidates}


@app.post("/tab/{tab}")
async def switch_tab(tab: str, session: IdeaVaultSession = Depends(get_session)):
    try:
        await session.switch_tab(tab)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return session.snapshot()


@app.post("/view-mode/{mode}")
async def set_view_mode(mode: str, session: IdeaVaultSession = Depends(get_session)):
    try:
        session.set_view_mode(mode)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return session.snapshot()


@app.post("/sort/{order}")
async def set_sort_order(order: str, session: IdeaVaultSession = Depends(get_session)):
    try:
        session.set_sort_order(order)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return session.snapshot()


@app.post("/error/dismiss")
async def dismiss_error(session: IdeaVaultSession = Depends(get_session)):
    session.dismiss_error()
    return session.snapshot()
