from indexschema.merge.analysis import AnalysisMergeResult, merge_analysis_settings
from indexschema.merge.mapping import MappingMergeResult, merge_type_mapping
from indexschema.merge.outcome import Additive, AttributeStatus, Conflict, MergeOutcome, Noop

__all__ = [
    "AnalysisMergeResult",
    "merge_analysis_settings",
    "MappingMergeResult",
    "merge_type_mapping",
    "Additive",
    "AttributeStatus",
    "Conflict",
    "MergeOutcome",
    "Noop",
]
