"""
データモデル定義
"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# 評価失敗時のプレースホルダー文言
EVALUATION_FAILED_SUMMARY = "Evaluation failed. Try re-evaluating."


class Category(str, Enum):
    """アイデアのカテゴリ（固定の列挙）"""
    TECHNOLOGY = "Technology"
    PROCESS_IMPROVEMENT = "Process Improvement"
    COST_SAVINGS = "Cost Savings"
    CUSTOMER_EXPERIENCE = "Customer Experience"
    EMPLOYEE_EXPERIENCE = "Employee Experience"
    PRODUCT_INNOVATION = "Product Innovation"
    OTHER = "Other"


CATEGORIES = [c.value for c in Category]


class IdeaStatus(str, Enum):
    """評価ステータス（ストアには保存されない）"""
    SUBMITTED = "submitted"
    EVALUATING = "evaluating"
    EVALUATED = "evaluated"
    ERROR = "error"


class EvaluationResult(BaseModel):
    """評価サービスのスコア一式"""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    # スコア（1〜10想定）。overall はサービス側の総合値で再計算しない
    innovation: Optional[int] = Field(default=None, alias="innovationScore")
    feasibility: Optional[int] = Field(default=None, alias="feasibilityScore")
    impact: Optional[int] = Field(default=None, alias="impactScore")
    overall: Optional[int] = Field(default=None, alias="overallScore")
    summary: str = ""
    strengths: List[str] = Field(default_factory=list)
    considerations: List[str] = Field(default_factory=list)
    next_steps: List[str] = Field(default_factory=list, alias="nextSteps")

    @field_validator("summary", mode="before")
    @classmethod
    def _none_to_blank(cls, v):
        return "" if v is None else v

    @field_validator("strengths", "considerations", "next_steps", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        # 欠落・null は空リストとして扱う
        return [] if v is None else v

    @classmethod
    def failure(cls, summary: str = EVALUATION_FAILED_SUMMARY) -> "EvaluationResult":
        """評価失敗時のプレースホルダー（サマリーのみ、スコアなし）"""
        return cls(summary=summary or EVALUATION_FAILED_SUMMARY)

    def scores(self) -> List[Optional[int]]:
        return [self.innovation, self.feasibility, self.impact, self.overall]

    def has_scores(self) -> bool:
        """4つのスコアがすべて揃っているか"""
        return all(s is not None for s in self.scores())

    def is_placeholder(self) -> bool:
        """サマリーのみの失敗プレースホルダーか"""
        return (
            all(s is None for s in self.scores())
            and not self.strengths
            and not self.considerations
            and not self.next_steps
        )


class Idea(BaseModel):
    """アイデアレコード"""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    # ストアが採番（不変）
    id: str
    title: str
    description: str
    category: Optional[Category] = None
    timestamp: Optional[str] = None
    row_number: Optional[int] = Field(default=None, alias="rowNumber")
    # クライアント側で管理
    status: IdeaStatus = IdeaStatus.SUBMITTED
    evaluation: Optional[EvaluationResult] = Field(default=None, alias="aiEvaluation")

    @field_validator("id", mode="before")
    @classmethod
    def _normalize_id(cls, v):
        if isinstance(v, int) and not isinstance(v, bool):
            v = str(v)
        if not isinstance(v, str) or not v:
            raise ValueError("id が不正です")
        return v

    @field_validator("category", mode="before")
    @classmethod
    def _blank_category(cls, v):
        return None if v in ("", None) else v

    @field_validator("timestamp", mode="before")
    @classmethod
    def _stringify_timestamp(cls, v):
        return None if v in ("", None) else str(v)

    def with_derived_status(self) -> "Idea":
        """
        保存済みの評価からステータスを決める

        スコアが揃っていれば evaluated、スコアのない評価は error、
        評価がなければ submitted。
        """
        if self.evaluation is None:
            return self.model_copy(update={"status": IdeaStatus.SUBMITTED})
        if self.evaluation.has_scores():
            return self.model_copy(update={"status": IdeaStatus.EVALUATED})
        return self.model_copy(update={
            "status": IdeaStatus.ERROR,
            "evaluation": EvaluationResult.failure(self.evaluation.summary),
        })
