"""
テスト用の共通フィクスチャ
Record Store / Evaluation Service は httpx.MockTransport で置き換える
"""
import asyncio
import json

import httpx
import pytest

from ideavault.errors import EvaluationError
from ideavault.models import EvaluationResult, Idea, IdeaStatus
from ideavault.registry import IdeaRegistry
from ideavault.services.evaluation_service import EvaluationGateway
from ideavault.services.orchestrator import EvaluationOrchestrator
from ideavault.services.store_service import StoreGateway

BASE_URL = "http://ideavault.test/api"

SAMPLE_EVALUATION = {
    "innovationScore": 6,
    "feasibilityScore": 9,
    "impactScore": 7,
    "overallScore": 7,
    "summary": "Solid, low-risk idea.",
    "strengths": ["Easy rollout"],
    "considerations": ["Needs IT policy change"],
    "nextSteps": ["Pilot in one floor"],
}


def make_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=BASE_URL,
        transport=httpx.MockTransport(handler),
        trust_env=False,
    )


def make_idea(idea_id: str, status: IdeaStatus = IdeaStatus.SUBMITTED, evaluation=None, **kwargs) -> Idea:
    if evaluation is None and status == IdeaStatus.EVALUATED:
        evaluation = EvaluationResult.model_validate(SAMPLE_EVALUATION)
    if evaluation is None and status == IdeaStatus.ERROR:
        evaluation = EvaluationResult.failure()
    data = {
        "id": idea_id,
        "title": kwargs.pop("title", f"Idea {idea_id}"),
        "description": kwargs.pop("description", f"Description of {idea_id}"),
        "status": status,
        "evaluation": evaluation,
    }
    data.update(kwargs)
    return Idea(**data)


async def settle(rounds: int = 10) -> None:
    """イベントループを数周回してタスクを進める"""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeBackend:
    """Record Store と Evaluation Service をまとめた偽サーバー"""

    def __init__(self):
        self.ideas = []
        self.requests = []
        self.next_id = 1
        self.list_status = 200
        self.create_status = 200
        self.evaluate_status = 200
        self.evaluation = dict(SAMPLE_EVALUATION)

    def count(self, method: str, path: str) -> int:
        return sum(1 for r in self.requests if r.method == method and r.url.path == path)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/api/ideas" and request.method == "GET":
            if self.list_status != 200:
                return httpx.Response(self.list_status, json={"error": "down"})
            return httpx.Response(200, json=self.ideas)
        if path == "/api/ideas" and request.method == "POST":
            if self.create_status != 200:
                return httpx.Response(self.create_status, json={"error": "down"})
            body = json.loads(request.content)
            record = {
                "id": self.next_id,
                "rowNumber": self.next_id + 1,
                "timestamp": "2026-10-19T09:00:00Z",
                **body,
            }
            self.next_id += 1
            self.ideas.insert(0, record)
            return httpx.Response(200, json=record)
        if path == "/api/evaluate" and request.method == "POST":
            if self.evaluate_status != 200:
                return httpx.Response(self.evaluate_status, json={"error": "failed"})
            return httpx.Response(200, json=self.evaluation)
        return httpx.Response(404)


class FakeEvaluator:
    """
    オーケストレーター用の評価ゲートウェイ
    gates に Event を入れておくと、その id の評価は set されるまで止まる
    """

    def __init__(self, outcomes=None):
        self.outcomes = outcomes or {}
        self.gates = {}
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.on_call = None

    async def evaluate_idea(self, idea: Idea) -> EvaluationResult:
        self.calls.append(idea.id)
        if self.on_call:
            self.on_call(idea)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            gate = self.gates.get(idea.id)
            if gate is not None:
                await gate.wait()
            else:
                await asyncio.sleep(0)
            outcome = self.outcomes.get(idea.id, SAMPLE_EVALUATION)
            if isinstance(outcome, Exception):
                raise outcome
            return EvaluationResult.model_validate(outcome)
        finally:
            self.in_flight -= 1

    async def aclose(self) -> None:
        pass


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def store(backend):
    return StoreGateway(client=make_client(backend.handler))


@pytest.fixture
def evaluator_gateway(backend):
    return EvaluationGateway(client=make_client(backend.handler))


@pytest.fixture
def registry():
    return IdeaRegistry()


@pytest.fixture
def fake_evaluator():
    return FakeEvaluator()


@pytest.fixture
def orchestrator(registry, fake_evaluator):
    return EvaluationOrchestrator(registry, fake_evaluator)


@pytest.fixture
def rejecting():
    return EvaluationError("service down", status_code=503)
