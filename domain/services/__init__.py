"""
Domain services.

These services drive the form engine while depending only on domain
models and ports so that infrastructure and CLI layers can remain thin.
"""

from .form_tracker import FormTracker  # noqa: F401
from .page_state import PageStateClassifier
from .field_extractor import FieldExtractor
from .value_resolver import ValueResolver
from .fill_executor import FillExecutor
from .page_observer import PageObserver
from .agent_decisions import ActionRunner, parse_agent_action
from .form_agent import FormAgent
from .checkpoints import CheckpointDetector
from .navigator import ApplicationNavigator
from .rule_filler import RuleBasedFiller, RuleFillReport
from .ai_filler import AIFormFiller, AIFillReport
from .debug import DebugRunManager
from .application_pipeline import ApplicationPipeline, PipelineSettings

__all__ = [
    "FormTracker",
    "PageStateClassifier",
    "FieldExtractor",
    "ValueResolver",
    "FillExecutor",
    "PageObserver",
    "ActionRunner",
    "parse_agent_action",
    "FormAgent",
    "CheckpointDetector",
    "ApplicationNavigator",
    "RuleBasedFiller",
    "RuleFillReport",
    "AIFormFiller",
    "AIFillReport",
    "DebugRunManager",
    "ApplicationPipeline",
    "PipelineSettings",
]
