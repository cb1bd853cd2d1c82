"""
Mix Engine - composes a RunResult for a selected option.

Dispatches each option to its composition path:
    - Single-source options (liked songs, signal playlist, acoustic playlist)
    - Curated genre radio
    - Artist radio
    - Blended recipe mixes (everything else)

Every call takes a new generation number; callers compare it with
``is_current()`` to drop results superseded by a newer request.
"""

import logging
import random
from typing import Dict, List, Optional, Tuple

from src.spotify.client import SpotifyClient
from src.spotify.models import SpotifyTrack

from .artist_radio import generate_artist_radio
from .block_store import BlockStore
from .catalog_store import CatalogStore
from .config import MixEngineConfig
from .constants import (
    ACOUSTIC_OPTION_ID,
    ALL_OPTIONS,
    ARTIST_RADIO_OPTION_ID,
    GENRE_RADIO_OPTION_ID,
    LIKED_OPTION_ID,
    NOVEL_EXTRA_CANDIDATES,
    SIGNAL_OPTION_ID,
    SINGLE_SOURCE_LIKED_MULTIPLIER,
)
from .cooldown_store import CooldownStore
from .exceptions import MixBuildError, MixConfigurationError
from .filters import FilteredPool, TrackFilter
from .genre_radio import generate_genre_radio
from .mock_catalog import MockCatalogClient
from .models import (
    CATEGORY_ORDER,
    CatalogConfig,
    MixDraft,
    Recipe,
    RuleSettings,
    RunOption,
    RunOptionType,
    RunResult,
    Track,
)
from .recipe import compute_recipe
from .resolver import ArtistResolver, CatalogResolver
from .rule_overrides import RuleOverrideStore
from .selection import interleave_indexed, pad_to_target, shuffled
from .sources import SourcePoolFetcher, playlist_fetch_size

logger = logging.getLogger(__name__)

SINGLE_SOURCE_OPTIONS = (LIKED_OPTION_ID, SIGNAL_OPTION_ID, ACOUSTIC_OPTION_ID)

CATEGORY_LABELS = {
    "acoustic": "Acoustic",
    "artist_primary": "Artist",
    "secondary_signal": "Signal",
    "liked": "Liked",
    "curated_genre": "Genre",
    "novel": "New",
}


def _fallback_warning(padded: List[SpotifyTrack], relaxed: List[SpotifyTrack]) -> Optional[str]:
    if not padded and not relaxed:
        return None
    warning = f"Sources ran short; filled {len(padded) + len(relaxed)} tracks via fallback"
    if relaxed:
        warning += f" ({len(relaxed)} re-admitted from recent history)"
    return warning + "."


class MixEngine:
    """Composes mixes from the catalog, honoring blocks and the cooldown window.

    Attributes:
        client: Catalog client (SpotifyClient or MockCatalogClient)
        artist_resolver: Resolved artist-id cache owned by this engine
    """

    def __init__(
        self,
        client,
        catalog_store: CatalogStore,
        cooldown_store: CooldownStore,
        block_store: BlockStore,
        config: MixEngineConfig,
        rng: Optional[random.Random] = None,
        rule_override_store: Optional[RuleOverrideStore] = None,
    ):
        self.client = client
        self.catalog_store = catalog_store
        self.cooldown_store = cooldown_store
        self.block_store = block_store
        self.rule_override_store = rule_override_store
        self.config = config
        self.rng = rng or random.Random()
        self.artist_resolver = ArtistResolver(client)
        self._generation = 0

    @classmethod
    def from_config(cls, config: MixEngineConfig, rng: Optional[random.Random] = None) -> "MixEngine":
        """Wire up the catalog client and state stores described by ``config``."""
        if config.use_mock_data:
            logger.info("Mock mode enabled: using the offline demo catalog")
            client = MockCatalogClient()
        else:
            client = SpotifyClient(config.to_spotify_config())
        return cls(
            client=client,
            catalog_store=CatalogStore(config.catalog_path),
            cooldown_store=CooldownStore(config.cooldown_path, window_days=config.cooldown_days),
            block_store=BlockStore(config.blocked_path),
            config=config,
            rng=rng,
            rule_override_store=RuleOverrideStore(config.rule_overrides_path),
        )

    @property
    def generation(self) -> int:
        return self._generation

    def is_current(self, result: RunResult) -> bool:
        """False once a newer generate call has started."""
        return result.generation == self._generation

    def reset_caches(self) -> None:
        self.artist_resolver.reset()

    def list_options(self) -> List[Tuple[RunOption, bool]]:
        """Every option with whether its catalog sources are linked."""
        return [(option, self.catalog_store.is_ready(option.id_key)) for option in ALL_OPTIONS]

    async def resolve_all(self) -> CatalogConfig:
        resolver = CatalogResolver(
            self.client,
            self.catalog_store,
            self.artist_resolver,
            primary_artist_name=self.config.primary_artist,
        )
        return await resolver.resolve_all()

    def _build_filter(self, rules: RuleSettings) -> TrackFilter:
        apply_cooldown = rules.avoid_repeats and not self.config.use_mock_data
        return TrackFilter(
            blocked_ids=self.block_store.blocked_ids(),
            restricted_ids=self.cooldown_store.restricted_ids() if apply_cooldown else frozenset(),
            allow_explicit=rules.allow_explicit,
            apply_cooldown=apply_cooldown,
        )

    async def generate_run_result(self, option: RunOption, rules: RuleSettings) -> RunResult:
        """Compose a mix for ``option``.

        Args:
            option: The selected mix option
            rules: Global rule settings; a stored per-option override wins

        Returns:
            RunResult stamped with this call's generation number

        Raises:
            MixConfigurationError: Podcast option, or a required source is unlinked
            MixBuildError: No eligible track could be selected at all
        """
        self._generation += 1
        generation = self._generation

        if option.type == RunOptionType.PODCAST:
            raise MixConfigurationError(f"{option.name} is a podcast option; podcasts are not composed here")

        if self.rule_override_store is not None:
            rules = self.rule_override_store.effective_rules(option.id, rules)

        length = rules.playlist_length
        logger.info(f"Composing {length} tracks for {option.name} (generation {generation})")

        fetcher = SourcePoolFetcher(self.client, self.catalog_store.get(), self.rng)
        track_filter = self._build_filter(rules)

        if option.id in SINGLE_SOURCE_OPTIONS:
            draft = await self._compose_single_source(option, rules, fetcher, track_filter)
        elif option.id == GENRE_RADIO_OPTION_ID:
            draft = await generate_genre_radio(fetcher, rules, track_filter, self.rng)
        elif option.id == ARTIST_RADIO_OPTION_ID:
            draft = await generate_artist_radio(
                fetcher,
                self.artist_resolver,
                self.catalog_store,
                rules,
                track_filter,
                self.config.primary_artist,
                self.config.similar_artists,
                self.rng,
            )
        else:
            draft = await self._compose_blended(option, rules, fetcher, track_filter)

        if not draft.tracks:
            if draft.failure is not None:
                raise MixBuildError(
                    f"No eligible tracks available for {option.name}: {draft.failure}"
                ) from draft.failure
            raise MixBuildError(f"No eligible tracks available for {option.name}")

        tracks = [Track.from_candidate(t, is_new=t.id in draft.novel_ids) for t in draft.tracks[:length]]

        if not self.config.use_mock_data:
            self.cooldown_store.mark_used(t.id for t in tracks)

        if draft.warning:
            logger.warning(f"{option.name}: {draft.warning}")
        logger.info(f"{option.name}: {len(tracks)} tracks ({draft.source_summary})")

        return RunResult(
            run_type=RunOptionType.MUSIC,
            option_name=option.name,
            tracks=tracks,
            source_summary=draft.source_summary,
            debug_summary=draft.debug_summary,
            warning=draft.warning,
            generation=generation,
        )

    async def _compose_single_source(
        self,
        option: RunOption,
        rules: RuleSettings,
        fetcher: SourcePoolFetcher,
        track_filter: TrackFilter,
    ) -> MixDraft:
        length = rules.playlist_length
        catalog = fetcher.catalog

        try:
            if option.id == LIKED_OPTION_ID:
                raw = await fetcher.fetch_liked(length * SINGLE_SOURCE_LIKED_MULTIPLIER)
            else:
                playlist_id = catalog.secondary_signal_id if option.id == SIGNAL_OPTION_ID else catalog.acoustic_id
                if not playlist_id:
                    raise MixConfigurationError(f"The {option.name} source is not linked. Link it first.")
                raw = await fetcher.fetch_playlist(playlist_id, playlist_fetch_size(length))
        except MixConfigurationError:
            raise
        except Exception as e:
            raise MixBuildError(f"Could not load {option.name}: {e}") from e

        pool = track_filter.apply(raw)
        selected = shuffled(pool.strict, self.rng)[:length]
        relaxed = pad_to_target(selected, length, pool.cooled_down, self.rng)

        warning = None
        if relaxed:
            warning = f"Source limit reached. Filled {len(relaxed)} tracks via history fallback."
        if len(selected) < length:
            short = f"Only {len(selected)} of {length} requested tracks were available."
            warning = f"{warning} {short}" if warning else short

        return MixDraft(
            tracks=selected,
            source_summary=f"Source: {option.name}",
            debug_summary=f"raw={len(raw)} eligible={len(pool.strict)} relaxed={len(pool.relaxed)}",
            warning=warning,
        )

    async def _novel_pool(
        self, quota: int, filtered: Dict[str, FilteredPool], track_filter: TrackFilter
    ) -> List[SpotifyTrack]:
        """Recommendations seeded from the liked and signal pools."""
        if quota <= 0:
            return []

        seed_pool = shuffled(
            [t for name in ("liked", "secondary_signal") if name in filtered for t in filtered[name].strict],
            self.rng,
        )
        seed_tracks = [t.id for t in seed_pool[:3]]
        seed_artists = [t.primary_artist.id for t in seed_pool[:2] if t.primary_artist]
        if not seed_tracks:
            logger.info("No seeds available, skipping recommendations")
            return []

        try:
            recommendations = await self.client.get_recommendations(
                seed_artists, seed_tracks, quota + NOVEL_EXTRA_CANDIDATES
            )
        except Exception as e:
            logger.warning(f"Recommendations unavailable, continuing without new tracks: {e}")
            return []
        return track_filter.apply(recommendations).strict[:quota]

    async def _compose_blended(
        self,
        option: RunOption,
        rules: RuleSettings,
        fetcher: SourcePoolFetcher,
        track_filter: TrackFilter,
    ) -> MixDraft:
        length = rules.playlist_length
        recipe: Recipe = compute_recipe(option.id, rules)

        # Liked is always fetched: it seeds recommendations and backs fallback padding
        categories = [
            name for name in CATEGORY_ORDER
            if name != "novel" and (recipe.quota(name) > 0 or name == "liked")
        ]
        pools = await fetcher.fetch_categories(categories, length, rules.artist_mode)
        filtered = {name: track_filter.apply(pools.get(name)) for name in categories}
        novel = await self._novel_pool(recipe.novel, filtered, track_filter)

        ordered: List[List[SpotifyTrack]] = []
        for name in CATEGORY_ORDER:
            if name == "novel":
                ordered.append(novel)
            elif name in filtered:
                ordered.append(shuffled(filtered[name].strict, self.rng)[:recipe.quota(name)])
            else:
                ordered.append([])

        picks = interleave_indexed(ordered, length)
        selected = [track for _, track in picks]
        counts = {name: 0 for name in CATEGORY_ORDER}
        for index, _ in picks:
            counts[CATEGORY_ORDER[index]] += 1

        padded = pad_to_target(
            selected, length, [t for name in categories for t in filtered[name].strict], self.rng
        )
        relaxed = pad_to_target(
            selected, length, [t for name in categories for t in filtered[name].cooled_down], self.rng
        )

        if not selected:
            raise MixBuildError(
                f"Could not compose {option.name}: every source was empty or unavailable"
            ) from pools.first_failure

        summary = " • ".join(f"{CATEGORY_LABELS[name]} {counts[name]}" for name in CATEGORY_ORDER)
        if padded or relaxed:
            summary += f" • Fallback {len(padded) + len(relaxed)}"
        pool_sizes = {name: len(filtered[name].strict) for name in categories}
        debug = f"recipe={recipe.as_dict()} pools={pool_sizes} failed={sorted(pools.failures)}"
        return MixDraft(
            tracks=selected,
            source_summary=summary,
            debug_summary=debug,
            warning=_fallback_warning(padded, relaxed),
            novel_ids={t.id for t in novel},
        )
