"""Analysis view engine: the command surface the host talks to.

Holds one board's cards and relationships, the current graph snapshot, its
clusters, the layout session, the candidate suggestions and the view state.
Every command recomputes from the latest state, so repeated commands are
last-write-wins.
"""

import asyncio
import logging
from collections.abc import Mapping

from cardnet.analysis import (
    AnalysisMode,
    AnalysisProvider,
    DerivedRelationshipAnalyzer,
    HttpSimilarityProvider,
    TagSimilarityAnalyzer,
)
from cardnet.config import settings
from cardnet.errors import BoardNotLoadedError, StorageError
from cardnet.graph import (
    ClusterResult,
    ImportanceConfig,
    LayoutConfig,
    NetworkConfig,
    build_graph,
    detect_clusters,
    summarize_cluster,
)
from cardnet.interaction import ViewState
from cardnet.layout import LayoutSession
from cardnet.models import AnalysisMethod, Card, Graph, Relationship, Suggestion
from cardnet.storage import CardStore
from cardnet.suggestions import (
    AnalysisRun,
    AnalysisRunner,
    ApprovalReport,
    SuggestionAggregator,
    aggregate_results,
    filter_existing,
)

logger = logging.getLogger(__name__)


def default_providers() -> dict[AnalysisMethod, AnalysisProvider]:
    """The three analysis methods: remote embedding scoring plus two in-process ones."""
    return {
        AnalysisMethod.EMBEDDING: HttpSimilarityProvider(),
        AnalysisMethod.TAG_SIMILARITY: TagSimilarityAnalyzer(),
        AnalysisMethod.DERIVED: DerivedRelationshipAnalyzer(),
    }


class AnalysisEngine:
    """Graph, layout, clustering and suggestion state of one board."""

    def __init__(
        self,
        store: CardStore,
        providers: Mapping[AnalysisMethod, AnalysisProvider] | None = None,
        network_config: NetworkConfig | None = None,
        layout_config: LayoutConfig | None = None,
        importance: ImportanceConfig | None = None,
        seed: int | None = None,
    ) -> None:
        self.store = store
        self.network_config = network_config or NetworkConfig()
        self.importance = importance or ImportanceConfig()
        self.layout = LayoutSession(layout_config, seed)
        self.runner = AnalysisRunner(providers if providers is not None else default_providers())
        self.view = ViewState()

        self.cluster_threshold = settings.cluster_threshold
        self.threshold_enabled = settings.cluster_threshold_enabled

        self.board_id: str | None = None
        self.cards: list[Card] = []
        self.relationships: list[Relationship] = []
        self.graph = Graph()
        self.clusters = ClusterResult()
        self.aggregator: SuggestionAggregator | None = None

    # ==========================================================================
    # Board data
    # ==========================================================================

    def _require_board(self) -> tuple[str, SuggestionAggregator]:
        if self.board_id is None or self.aggregator is None:
            raise BoardNotLoadedError("No board loaded; call load() first")
        return self.board_id, self.aggregator

    async def load(self, board_id: str) -> Graph:
        """Fetch the board's cards and relationships and rebuild everything."""
        try:
            cards, relationships = await asyncio.gather(
                self.store.list_cards(board_id),
                self.store.list_relationships(board_id),
            )
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to load board {board_id}: {e}") from e

        if board_id != self.board_id:
            self.aggregator = SuggestionAggregator(self.store, board_id)
            self.layout = LayoutSession(self.layout.config, self.layout.seed)
            self.view = ViewState()
        if {c.id for c in cards} != {c.id for c in self.cards} or board_id != self.board_id:
            # In-flight analysis runs refer to the old card set
            self.runner.invalidate()

        self.board_id = board_id
        self.cards = list(cards)
        self.relationships = list(relationships)
        logger.info(f"Loaded board {board_id}: {len(self.cards)} cards, {len(self.relationships)} relationships")
        return self.rebuild_graph()

    def set_network_config(self, config: NetworkConfig | dict) -> Graph:
        """Replace the view configuration (validated) and rebuild."""
        if not isinstance(config, NetworkConfig):
            config = NetworkConfig.model_validate(config)
        self.network_config = config
        return self.rebuild_graph()

    def _effective_config(self) -> NetworkConfig:
        node_filter = self.view.node_filter(self.network_config.node_filter)
        return self.network_config.model_copy(update={"node_filter": node_filter})

    # ==========================================================================
    # Graph, clusters and layout
    # ==========================================================================

    def _detect(self) -> ClusterResult:
        self.clusters = detect_clusters(self.graph, self.cluster_threshold, self.threshold_enabled)
        return self.clusters

    def rebuild_graph(self) -> Graph:
        """Rebuild the graph snapshot, its clusters and follow it with the layout."""
        self.graph = build_graph(
            self.cards, self.relationships, self._effective_config(), self.importance
        )
        self._detect()
        self.layout.ensure_layout(self.graph)
        self.view.prune(self.graph)
        return self.graph

    def reset_layout(self) -> dict:
        """Fresh organic layout; clears selection and hides the cluster overlay."""
        self.view.reset()
        return self.layout.reset(self.graph)

    def auto_layout(self) -> dict:
        """Cluster-anchored layout under the current threshold settings."""
        return self.layout.auto_layout(self.graph, self._detect())

    def set_cluster_threshold(self, value: float) -> ClusterResult:
        self.cluster_threshold = min(1.0, max(0.0, float(value)))
        return self._detect()

    def toggle_threshold_filtering(self, enabled: bool) -> ClusterResult:
        self.threshold_enabled = bool(enabled)
        return self._detect()

    def toggle_clusters(self) -> bool:
        self._detect()
        return self.view.toggle_clusters()

    def toggle_tag_filter(self, tag: str) -> Graph:
        self.view.toggle_tag_filter(tag)
        return self.rebuild_graph()

    def toggle_type_filter(self, category: str) -> Graph:
        self.view.toggle_type_filter(category)
        return self.rebuild_graph()

    def select_node(self, node_id: str) -> set[str]:
        return self.view.select(node_id, self.graph)

    def cluster_summaries(self) -> list[dict]:
        return [
            summarize_cluster(self.graph, cluster, i).to_dict()
            for i, cluster in enumerate(self.clusters.clusters)
        ]

    # ==========================================================================
    # Analysis and suggestions
    # ==========================================================================

    @property
    def suggestions(self) -> list[Suggestion]:
        return self.aggregator.suggestions if self.aggregator else []

    async def run_analysis(self, mode: AnalysisMode = "incremental") -> AnalysisRun:
        """Run the three analysis methods and update the candidate list.

        `full` replaces the list, `incremental` merges into it. Pairs that
        already exist as relationships are filtered out in both modes.

        Raises:
            AnalysisFailedError: Every method failed
        """
        board_id, aggregator = self._require_board()
        if mode not in ("incremental", "full"):
            raise ValueError(f"Unknown analysis mode: {mode}")

        run = await self.runner.run(board_id, list(self.cards), mode)
        if run.stale:
            return run

        suggestions = aggregate_results(run.results)
        try:
            existing = await self.store.list_relationships(board_id)
        except Exception as e:
            raise StorageError(f"Failed to list relationships of board {board_id}: {e}") from e

        if not self.runner.is_current(run.generation):
            run.stale = True
            logger.info(f"Analysis run {run.generation} superseded while filtering, discarding")
            return run

        known = [*existing, *self.relationships]
        if mode == "full":
            aggregator.replace(filter_existing(suggestions, known))
        else:
            aggregator.merge(suggestions)
            aggregator.replace(filter_existing(aggregator.suggestions, known))

        logger.info(
            f"Analysis run {run.generation}: {len(aggregator)} suggestions "
            f"{aggregator.counts_by_method()}, failed methods: {run.failed_methods or 'none'}"
        )
        return run

    def _add_relationships(self, relationships: list[Relationship]) -> None:
        if relationships:
            self.relationships.extend(relationships)
            self.rebuild_graph()

    async def approve_suggestion(self, pair: tuple[str, str]) -> Relationship:
        """Persist one suggestion and add it to the graph."""
        _, aggregator = self._require_board()
        relationship = await aggregator.approve(pair)
        self._add_relationships([relationship])
        return relationship

    async def approve_all_suggestions(self) -> ApprovalReport:
        _, aggregator = self._require_board()
        report = await aggregator.approve_all()
        self._add_relationships(report.relationships)
        return report

    async def approve_method_suggestions(self, method: AnalysisMethod | str) -> ApprovalReport:
        _, aggregator = self._require_board()
        report = await aggregator.approve_method(AnalysisMethod(method))
        self._add_relationships(report.relationships)
        return report

    def reject_suggestion(self, pair: tuple[str, str]) -> bool:
        _, aggregator = self._require_board()
        return aggregator.reject(pair)

    def reject_method_suggestions(self, method: AnalysisMethod | str) -> int:
        _, aggregator = self._require_board()
        return aggregator.reject_method(AnalysisMethod(method))

    def reject_all_suggestions(self) -> int:
        _, aggregator = self._require_board()
        return aggregator.reject_all()

    async def close(self) -> None:
        """Release provider resources (HTTP sessions)."""
        for provider in self.runner.providers.values():
            close = getattr(provider, "close", None)
            if close is not None:
                await close()

    # ==========================================================================
    # Snapshot
    # ==========================================================================

    def snapshot(self) -> dict:
        """JSON-ready state for the rendering surface."""
        positions = self.layout.to_dict()
        graph = self.graph.to_dict()
        for node in graph["nodes"]:
            node["position"] = positions.get(node["id"])
        return {
            "board_id": self.board_id,
            "graph": graph,
            "clusters": self.clusters.to_dict(),
            "cluster_summaries": self.cluster_summaries(),
            "cluster_threshold": self.cluster_threshold,
            "threshold_enabled": self.threshold_enabled,
            "suggestions": [s.to_dict() for s in self.suggestions],
            "view": self.view.to_dict(),
            "canvas": {"width": self.layout.config.width, "height": self.layout.config.height},
        }
