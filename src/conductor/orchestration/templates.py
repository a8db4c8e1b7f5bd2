"""Workflow Templates — pre-built marketing workflows, one per common shape.

ARCHITECTURE
────────────
::

    Built-in templates:
      content_pipeline()      → sequential: research → writer → editor → seo → publisher
      campaign_launch()       → supervisor + 4 channel agents, HITL approval at "ads"
      competitor_analysis()   → concurrent: 5 sources, max_concurrency=4

    Template registry:
      register_template(name, factory)   → add custom template
      get_template(name)                 → retrieve factory
      list_templates()                   → available template names

Templates return an unregistered ``WorkflowDefinition``; use
``Orchestrator.create_template_workflow(name)`` to build and register in
one step.

Example::

    from conductor.orchestration.templates import get_template

    definition = get_template("content_pipeline")(workflow_id="blog_pipeline")

Tags:
    conductor, orchestration, templates, marketing, pre-built-patterns

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Callable

from conductor.orchestration.models import (
    AgentEdge,
    AgentNode,
    ApprovalThresholds,
    ErrorHandling,
    HumanInTheLoopConfig,
    OrchestrationPattern,
    WorkflowConfig,
    WorkflowDefinition,
)

# ---------------------------------------------------------------------------
# Template registry
# ---------------------------------------------------------------------------

_TEMPLATES: dict[str, Callable[..., WorkflowDefinition]] = {}


def register_template(name: str, factory: Callable[..., WorkflowDefinition]) -> None:
    """Register a workflow template factory under ``name``."""
    _TEMPLATES[name] = factory


def get_template(name: str) -> Callable[..., WorkflowDefinition]:
    """Get a registered template factory by name.

    Raises:
        KeyError: If the template is not registered.
    """
    if name not in _TEMPLATES:
        raise KeyError(f"Unknown template: {name!r}. Available: {list_templates()}")
    return _TEMPLATES[name]


def list_templates() -> list[str]:
    """List all registered template names."""
    return sorted(_TEMPLATES.keys())


# ---------------------------------------------------------------------------
# Built-in templates
# ---------------------------------------------------------------------------


def content_pipeline(
    *,
    workflow_id: str = "marketing_content_pipeline",
    error_handling: ErrorHandling = ErrorHandling.CONTINUE,
) -> WorkflowDefinition:
    """Sequential content creation from research to publication."""
    stages = [
        AgentNode("research", "Research Agent", "research", ("web_search", "data_analysis")),
        AgentNode("writer", "Content Writer", "creative", ("copywriting", "seo")),
        AgentNode("editor", "Editor Agent", "quality", ("proofreading", "fact_checking")),
        AgentNode("seo", "SEO Optimizer", "technical", ("seo", "keyword_optimization")),
        AgentNode("publisher", "Publishing Agent", "operations", ("cms", "scheduling")),
    ]
    return WorkflowDefinition(
        id=workflow_id,
        name="Content Creation Pipeline",
        description="Sequential content creation from research to publication",
        pattern=OrchestrationPattern.SEQUENTIAL,
        nodes=tuple(stages),
        edges=tuple(AgentEdge(a.id, b.id) for a, b in zip(stages, stages[1:])),
        entry_point="research",
        exit_points=("publisher",),
        config=WorkflowConfig(error_handling=error_handling),
    )


def campaign_launch(*, workflow_id: str = "marketing_campaign_launch") -> WorkflowDefinition:
    """Supervisor-coordinated multi-channel campaign launch.

    Human approval is enabled with ``ads`` as approval point; it only takes
    effect when the supervisor policy carries an approval rule.
    """
    channels = ("social", "email", "ads")
    return WorkflowDefinition(
        id=workflow_id,
        name="Campaign Launch Orchestration",
        description="Supervisor-coordinated multi-channel campaign launch",
        pattern=OrchestrationPattern.SUPERVISOR,
        nodes=(
            AgentNode("supervisor", "Campaign Director", "executive", ("strategy", "coordination")),
            AgentNode("social", "Social Media Agent", "channel", ("social_publishing", "engagement")),
            AgentNode("email", "Email Agent", "channel", ("email_marketing", "automation")),
            AgentNode("ads", "Ads Agent", "channel", ("ppc", "display_ads")),
            AgentNode("analytics", "Analytics Agent", "reporting", ("tracking", "attribution")),
        ),
        edges=tuple(AgentEdge("supervisor", c) for c in channels)
        + tuple(AgentEdge(c, "analytics") for c in channels),
        entry_point="supervisor",
        exit_points=("analytics",),
        config=WorkflowConfig(
            human_in_the_loop=HumanInTheLoopConfig(
                enabled=True,
                approval_points=("ads",),
                thresholds=ApprovalThresholds(cost=1000),
            ),
        ),
    )


def competitor_analysis(
    *,
    workflow_id: str = "marketing_competitor_analysis",
    max_concurrency: int = 4,
) -> WorkflowDefinition:
    """Concurrent multi-source competitor analysis."""
    sources = ("web", "social", "seo", "pricing")
    return WorkflowDefinition(
        id=workflow_id,
        name="Competitor Intelligence Workflow",
        description="Concurrent multi-source competitor analysis",
        pattern=OrchestrationPattern.CONCURRENT,
        nodes=(
            AgentNode("web", "Web Scraper", "data", ("scraping", "extraction")),
            AgentNode("social", "Social Listener", "data", ("social_monitoring", "sentiment")),
            AgentNode("seo", "SEO Analyzer", "data", ("seo_analysis", "backlinks")),
            AgentNode("pricing", "Price Monitor", "data", ("price_tracking", "alerts")),
            AgentNode("synthesizer", "Intelligence Synthesizer", "analysis", ("synthesis", "insights")),
        ),
        edges=tuple(AgentEdge(s, "synthesizer") for s in sources),
        entry_point="web",
        exit_points=("synthesizer",),
        config=WorkflowConfig(max_concurrency=max_concurrency),
    )


register_template("content_pipeline", content_pipeline)
register_template("campaign_launch", campaign_launch)
register_template("competitor_analysis", competitor_analysis)
