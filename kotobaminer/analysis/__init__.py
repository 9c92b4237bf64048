from .base import Occurrence, Term, TermKey, FileReport, BalanceResult, AnalysisResult
from .aggregator import TermAggregator, term_key, terms_by_file
from .frequency import FrequencyAnalyzer
from .balancer import CorpusBalancer, balance_by_source, trimmed_mean
from .file_tree import FileTree, FileTreeBuilder, FileTreeNode, TreeNodeId
from .export import ExportRow, build_export_rows, competition_ranks

__all__ = [
    "Occurrence",
    "Term",
    "TermKey",
    "FileReport",
    "BalanceResult",
    "AnalysisResult",
    "TermAggregator",
    "term_key",
    "terms_by_file",
    "FrequencyAnalyzer",
    "CorpusBalancer",
    "balance_by_source",
    "trimmed_mean",
    "FileTree",
    "FileTreeBuilder",
    "FileTreeNode",
    "TreeNodeId",
    "ExportRow",
    "build_export_rows",
    "competition_ranks",
]
