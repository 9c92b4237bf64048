import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .analysis.aggregator import TermAggregator
from .analysis.balancer import CorpusBalancer
from .analysis.base import AnalysisResult, FileReport
from .analysis.file_tree import FileTree, FileTreeBuilder
from .analysis.frequency import FrequencyAnalyzer
from .config import AnalysisOptions
from .errors import Diagnostic, FileReadError, SegmentationError
from .extractors.base import SourceFile
from .extractors.text import load_source, split_sentences
from .segmentation.dictionary import DictionaryHandle, load_dictionary
from .segmentation.matcher import WordRuleMatcher
from .segmentation.rules import Rule
from .segmentation.tokenizer import TokenizerAdapter
from .tasks import FREQUENCY_ANALYSIS, AnalysisStage, ProgressTracker, TaskHandle, TaskManager
from .utils.cache import CacheEntry, Segmented, WordCache

logger = logging.getLogger(__name__)

SENTENCE_BATCH = 64


class Pipeline:
    """
    kotobaminer end-to-end pipeline.

    Stages:
      1. Discover: FileTreeBuilder finds supported files under a root
      2. Segment: each file is split into sentences, tokenized and folded into words
      3. Aggregate: words become Terms keyed by (lemma, reading, part of speech)
      4. Analyze: frequencies, weighted scores, comprehension and the surfacing filter
      5. Balance: optional greedy coverage selection under a budget

    Usage:
        p = Pipeline(options=AnalysisOptions(minimum_frequency=2))
        result = p.run(Path("corpus"))

    The dictionary is loaded on first use unless a handle is passed in, and
    belongs to this pipeline. A missing dictionary raises DictionaryUnavailable;
    unreadable files and untokenizable sentences are skipped and reported in
    ``result.diagnostics``.
    """

    def __init__(
        self,
        options: Optional[AnalysisOptions] = None,
        dictionary: Optional[DictionaryHandle] = None,
        dicdir: Optional[Union[str, Path]] = None,
        rules: Optional[List[Rule]] = None,
        cache: Optional[WordCache] = None,
    ):
        self.options = options or AnalysisOptions()
        self.dicdir = dicdir
        self.cache = cache
        self._dictionary = dictionary
        self._tokenizer: Optional[TokenizerAdapter] = None
        self._matcher = WordRuleMatcher(rules)

    @property
    def dictionary(self) -> DictionaryHandle:
        if self._dictionary is None:
            self._dictionary = load_dictionary(self.dicdir)
        return self._dictionary

    @property
    def tokenizer(self) -> TokenizerAdapter:
        if self._tokenizer is None:
            self._tokenizer = TokenizerAdapter(self.dictionary)
        return self._tokenizer

    @property
    def segmenter_id(self) -> str:
        """Identifies the dictionary and word rules for cache keys."""
        return f"{self.dictionary.identity}|rules:{self._matcher.fingerprint}"

    def segment_source(
        self,
        source: SourceFile,
        diagnostics: Optional[List[Diagnostic]] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Optional[Segmented]:
        """
        Sentences and words of one file.

        Returns None if cancellation was observed between sentence batches;
        the partially segmented file is then dropped as a whole.
        """
        if self.cache is not None:
            cached = self.cache.get(source, self.segmenter_id)
            if cached is not None:
                for index, message in cached.skipped:
                    logger.warning(f"Skipping sentence {index} of {source.path}: {message}")
                    if diagnostics is not None:
                        diagnostics.append(
                            Diagnostic(
                                kind="segmentation",
                                path=source.path,
                                message=message,
                                sentence_index=index,
                            )
                        )
                return cached.segmented

        segmented: Segmented = []
        skipped: List[Tuple[int, str]] = []
        for sentence in split_sentences(source):
            if cancel is not None and sentence.index % SENTENCE_BATCH == 0 and cancel.is_set():
                return None
            try:
                tokens = self.tokenizer.tokenize(sentence.text)
            except SegmentationError as e:
                logger.warning(f"Skipping sentence {sentence.index} of {source.path}: {e}")
                skipped.append((sentence.index, str(e)))
                if diagnostics is not None:
                    diagnostics.append(
                        Diagnostic.from_segmentation_error(e, source.path, sentence.index)
                    )
                continue
            segmented.append((sentence, self._matcher.match(tokens, sentence)))

        if self.cache is not None:
            self.cache.set(source, self.segmenter_id, CacheEntry(segmented, skipped))
        return segmented

    def run(
        self,
        root: Union[str, Path],
        cancel: Optional[threading.Event] = None,
        progress: Optional[ProgressTracker] = None,
    ) -> AnalysisResult:
        """Discover files under ``root`` and analyze the selected ones."""
        progress = progress or ProgressTracker()
        progress.set_stage(AnalysisStage.DISCOVERING, str(root))
        tree = FileTreeBuilder().build(root)
        return self.run_files(
            tree.root.selected_files(), cancel=cancel, progress=progress, tree=tree, root=root
        )

    def run_files(
        self,
        paths: Sequence[Union[str, Path]],
        cancel: Optional[threading.Event] = None,
        progress: Optional[ProgressTracker] = None,
        tree: Optional[FileTree] = None,
        root: Optional[Union[str, Path]] = None,
    ) -> AnalysisResult:
        """Analyze an explicit list of files, in the order given."""
        progress = progress or ProgressTracker()
        paths = [Path(p) for p in paths]
        result = AnalysisResult(tree=tree)
        if tree is not None:
            for skipped in tree.skipped:
                result.diagnostics.append(
                    Diagnostic(kind="directory", path=skipped, message="unreadable directory")
                )

        sizes = tree.sizes() if tree is not None else {}
        total_bytes = sum(sizes.get(p, 0) for p in paths)
        progress.begin(len(paths), total_bytes)
        progress.set_stage(AnalysisStage.SEGMENTING, f"{len(paths)} files")

        aggregator = TermAggregator()
        reports: Dict[Path, FileReport] = {}
        for source_id, path in enumerate(paths):
            if cancel is not None and cancel.is_set():
                break
            progress.start_file(path.name)
            try:
                source = load_source(path, source_id)
            except FileReadError as e:
                logger.warning(f"Skipping {path}: {e.reason}")
                result.diagnostics.append(Diagnostic.from_file_error(e))
                progress.file_done(sizes.get(path, 0))
                continue

            segmented = self.segment_source(source, result.diagnostics, cancel)
            if segmented is None:
                break
            aggregator.add_file(segmented)
            reports[path] = FileReport(
                path=path, size=source.size, sentence_count=len(segmented)
            )
            progress.file_done(source.size)

        result.cancelled = cancel is not None and cancel.is_set()
        if result.cancelled:
            logger.info(f"Analysis cancelled after {len(reports)} of {len(paths)} files")

        progress.set_stage(AnalysisStage.ANALYZING, f"{len(aggregator)} terms")
        analyzer = FrequencyAnalyzer(self.options, root=root)
        analyzer.compute(aggregator.terms)
        comprehension = analyzer.comprehension(aggregator.terms, reports)
        for path, report in reports.items():
            scored = comprehension[path]
            report.term_count = scored.term_count
            report.known_term_count = scored.known_term_count
            report.comprehension = scored.comprehension

        result.all_terms = aggregator.terms
        result.terms = analyzer.surface(aggregator.terms)
        result.files = reports

        target = self.options.corpus_balance_target
        if target is not None:
            progress.set_stage(AnalysisStage.BALANCING)
            result.balance = CorpusBalancer(target).select(
                aggregator.terms_by_file(),
                {path: report.size for path, report in reports.items()},
            )

        if tree is not None:
            tree.annotate(reports)

        progress.set_stage(AnalysisStage.DONE, f"{len(result.terms)} terms surfaced")
        return result

    def start(
        self, manager: TaskManager, root: Union[str, Path]
    ) -> TaskHandle:
        """Run the analysis of ``root`` as a background task on ``manager``."""
        return manager.start(
            FREQUENCY_ANALYSIS,
            lambda cancel, progress: self.run(root, cancel=cancel, progress=progress),
        )
