"""Protocol layer: request/response DTOs shared by API, store and client modules."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


EngagementLevel = Literal["low", "medium", "high"]
RiskTier = Literal["low", "medium", "high", "critical"]
Priority = Literal["High", "Medium", "Low"]
NbaActionType = Literal["meeting", "email", "call", "event"]
NbaStatus = Literal["pending", "completed", "dismissed"]
PlanStatus = Literal["active", "completed", "archived"]
SwitchingStatus = Literal["active", "addressed", "monitoring"]
SessionStatus = Literal["in_progress", "completed", "failed"]


class CamelModel(BaseModel):
    """DTO base: snake_case attributes, camelCase JSON like the dashboard expects."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RiskScoreFactor(CamelModel):
    """One explainable contribution to an HCP switch-risk score."""

    factor_key: str
    label: str
    points: int
    evidence: str
    max_points: int


class HcpCreate(CamelModel):
    name: str = Field(..., min_length=1)
    specialty: str
    hospital: str
    territory: str
    last_visit_date: str | None = None
    engagement_level: EngagementLevel = "medium"
    switch_risk_score: int = Field(default=0, ge=0, le=100)
    switch_risk_tier: RiskTier = "low"
    switch_risk_reasons: list[str] = Field(default_factory=list)
    risk_score_breakdown: list[RiskScoreFactor] | None = None
    last_risk_update: str | None = None


class HcpDto(HcpCreate):
    id: int
    created_at: str


class NbaCreate(CamelModel):
    hcp_id: int
    action: str = Field(..., min_length=1)
    action_type: NbaActionType
    priority: Priority
    reason: str
    ai_insight: str
    status: NbaStatus = "pending"
    completed_at: str | None = None


class NbaDto(NbaCreate):
    id: int
    generated_at: str


class NbaWithHcpDto(NbaDto):
    hcp: HcpDto | None = None


class NbaStatusUpdateRequest(BaseModel):
    status: NbaStatus


class SwitchingStatusUpdateRequest(BaseModel):
    status: SwitchingStatus


class SuccessResponse(BaseModel):
    success: bool = True


class TerritoryPlanStep(CamelModel):
    time: str
    type: Literal["visit", "email", "meeting", "call"]
    title: str
    hcp_id: int
    location: str
    priority: Priority
    reasoning: str
    action: str
    status: Literal["pending", "ready", "confirmed", "completed"] = "pending"


class TerritoryPlanCreate(CamelModel):
    territory: str = Field(..., min_length=1)
    plan_date: str
    agent_reasoning: str
    steps: list[TerritoryPlanStep] = Field(default_factory=list)
    status: PlanStatus = "active"


class TerritoryPlanDto(TerritoryPlanCreate):
    id: int
    generated_at: str


class SwitchingAnalyticsCreate(CamelModel):
    """Root-cause percentages for one reporting period."""

    period: str
    clinical_efficacy: int = Field(ge=0, le=100)
    patient_access: int = Field(ge=0, le=100)
    side_effects: int = Field(ge=0, le=100)
    competitor_pricing: int = Field(ge=0, le=100)


class SwitchingAnalyticsDto(SwitchingAnalyticsCreate):
    id: int
    updated_at: str


class SwitchingEventDto(CamelModel):
    id: int
    hcp_id: int
    from_product: str
    to_product: str
    detected_at: str
    confidence_score: int = Field(ge=0, le=100)
    switch_type: Literal["gradual", "sudden", "complete"]
    impact_level: RiskTier
    root_causes: list[str] = Field(default_factory=list)
    status: SwitchingStatus = "active"
    ai_analysis: str


class SwitchingEventWithHcpDto(SwitchingEventDto):
    hcp: HcpDto | None = None


class RlActionScore(CamelModel):
    action: str
    action_type: str
    confidence: float
    q_value: float
    reasoning: str


class RlContribution(CamelModel):
    top_actions: list[RlActionScore] = Field(default_factory=list)
    policy_version: str
    model_name: str


class TriggeredRule(CamelModel):
    rule_id: str
    rule_name: str
    condition: str
    action: str
    priority: str


class RulesContribution(CamelModel):
    triggered_rules: list[TriggeredRule] = Field(default_factory=list)
    filters: list[str] = Field(default_factory=list)
    escalations: list[str] = Field(default_factory=list)


class LlmContribution(CamelModel):
    narrative: str
    adjustments: list[str] = Field(default_factory=list)
    hcp_specific_insights: list[str] = Field(default_factory=list)


class FinalSynthesis(CamelModel):
    action: str
    action_type: str
    priority: str
    reason: str
    synthesis_rationale: str


class NbaProvenanceDto(CamelModel):
    """How the RL policy, business rules and LLM narrative combined into one NBA."""

    hcp_id: int
    rl_contribution: RlContribution
    rules_contribution: RulesContribution
    llm_contribution: LlmContribution
    final_synthesis: FinalSynthesis


GraphNodeType = Literal["HCP", "Drug", "Patient", "ClinicalEvent", "Payer", "Indication", "Cohort"]
RelationshipType = Literal[
    "PRESCRIBED",
    "TREATS",
    "ATTENDED",
    "SWITCHED_FROM",
    "SWITCHED_TO",
    "DENIED_BY",
    "ACCESS_ISSUE",
    "HAS_INDICATION",
    "BELONGS_TO",
    "INFLUENCED_BY",
    "PRESENTED_AT",
]


class GraphNodeDto(CamelModel):
    id: str
    type: GraphNodeType
    label: str
    properties: dict[str, Any] = Field(default_factory=dict)


class GraphEdgeDto(CamelModel):
    source: str = Field(alias="from")
    target: str = Field(alias="to")
    type: RelationshipType
    properties: dict[str, Any] = Field(default_factory=dict)


class GraphDto(BaseModel):
    nodes: list[GraphNodeDto] = Field(default_factory=list)
    edges: list[GraphEdgeDto] = Field(default_factory=list)


class StatsDto(CamelModel):
    active_hcps: int
    switching_risks: int
    actions_completed: int
    total_actions: int
    agent_accuracy: float


class AgentSessionCreate(CamelModel):
    goal_description: str = Field(..., min_length=1)
    goal_type: str = Field(..., min_length=1)
    context_data: dict[str, Any] = Field(default_factory=dict)


class AgentSessionDto(CamelModel):
    """One run of the external multi-agent reasoning process."""

    id: int
    goal_description: str
    goal_type: str
    status: SessionStatus = "in_progress"
    current_phase: str | None = None
    context_data: dict[str, Any] = Field(default_factory=dict)
    final_outcome: str | None = None
    confidence_score: int | None = None
    started_at: str
    completed_at: str | None = None


class AgentThoughtCreate(CamelModel):
    agent_type: str = Field(..., min_length=1)
    thought_type: str = Field(..., min_length=1)
    content: str
    metadata: dict[str, Any] | None = None


class AgentThoughtDto(AgentThoughtCreate):
    id: int
    session_id: int
    sequence_number: int
    timestamp: str


class AgentActionCreate(CamelModel):
    agent_type: str = Field(..., min_length=1)
    action_type: str = Field(..., min_length=1)
    action_description: str
    action_params: dict[str, Any] | None = None
    result: dict[str, Any] | None = None
    success: bool = True
    error_message: str | None = None


class AgentActionDto(AgentActionCreate):
    id: int
    session_id: int
    executed_at: str


class PhaseUpdateRequest(BaseModel):
    phase: str = Field(..., min_length=1)


class SessionCompleteRequest(CamelModel):
    result: Any = None
    final_outcome: str | None = None
    confidence_score: int | None = Field(default=None, ge=0, le=100)


class SessionFailRequest(BaseModel):
    error: str = Field(..., min_length=1)


class AgentSessionDetailDto(CamelModel):
    """Full persisted reasoning trace used to backfill a timeline."""

    session: AgentSessionDto
    thoughts: list[AgentThoughtDto] = Field(default_factory=list)
    actions: list[AgentActionDto] = Field(default_factory=list)
