"""
Session state container for the detector view.

All mutable view state lives in ``SessionStore``. The upload flow is driven
by an explicit transition table; every accepted upload, rejection while
loading, and reset bumps a generation counter so that an analysis started
for an older upload cannot overwrite newer state.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np

from detectoo.image_handler import INVALID_TYPE_MESSAGE
from detectoo.models import AnalysisResult, Region
from detectoo.visualization import Heatmap, HeatmapCache

logger = logging.getLogger(__name__)

PAGES = ('home', 'detector', 'about', 'contact', 'support')


class Phase(Enum):
    IDLE = 'idle'
    LOADING = 'loading'
    RESULT = 'result'
    ERROR = 'error'


class Event(Enum):
    FILE_ACCEPTED = 'file_accepted'
    FILE_REJECTED = 'file_rejected'
    ANALYSIS_DONE = 'analysis_done'
    RESET = 'reset'
    TOGGLE_HEATMAP = 'toggle_heatmap'


TRANSITIONS = {
    (Phase.IDLE, Event.FILE_ACCEPTED): Phase.LOADING,
    (Phase.IDLE, Event.FILE_REJECTED): Phase.ERROR,
    (Phase.IDLE, Event.RESET): Phase.IDLE,

    (Phase.LOADING, Event.FILE_ACCEPTED): Phase.LOADING,
    (Phase.LOADING, Event.FILE_REJECTED): Phase.ERROR,
    (Phase.LOADING, Event.ANALYSIS_DONE): Phase.RESULT,
    (Phase.LOADING, Event.RESET): Phase.IDLE,

    (Phase.RESULT, Event.FILE_ACCEPTED): Phase.LOADING,
    (Phase.RESULT, Event.FILE_REJECTED): Phase.ERROR,
    (Phase.RESULT, Event.RESET): Phase.IDLE,
    (Phase.RESULT, Event.TOGGLE_HEATMAP): Phase.RESULT,

    (Phase.ERROR, Event.FILE_ACCEPTED): Phase.LOADING,
    (Phase.ERROR, Event.FILE_REJECTED): Phase.ERROR,
    (Phase.ERROR, Event.RESET): Phase.IDLE,
}


class InvalidTransitionError(RuntimeError):
    """Raised when an event is not allowed in the current phase."""

    def __init__(self, phase: Phase, event: Event):
        super().__init__(f"Event {event.value!r} is not allowed in phase {phase.value!r}")
        self.phase = phase
        self.event = event


@dataclass
class SessionState:
    """Snapshot of everything the detector view renders."""
    page: str = 'home'
    phase: Phase = Phase.IDLE
    image: Optional[np.ndarray] = None
    file_name: Optional[str] = None
    file_size: int = 0
    result: Optional[AnalysisResult] = None
    regions: Tuple[Region, ...] = ()
    history: List[AnalysisResult] = field(default_factory=list)
    error: Optional[str] = None
    show_heatmap: bool = False
    heatmap: Optional[Heatmap] = None
    generation: int = 0

    @property
    def loading(self) -> bool:
        return self.phase is Phase.LOADING


class SessionStore:
    """Owns a SessionState and applies the upload state machine to it."""

    HISTORY_LIMIT = 10

    def __init__(self, heatmap_cache: Optional[HeatmapCache] = None,
                 history_limit: int = HISTORY_LIMIT):
        self.state = SessionState()
        self.heatmap_cache = heatmap_cache or HeatmapCache()
        self.history_limit = history_limit

    def navigate(self, page: str) -> None:
        if page not in PAGES:
            raise ValueError(f"Unknown page: {page}")
        self.state.page = page

    def accept_file(self, image: np.ndarray, file_name: str, file_size: int = 0) -> int:
        """
        Start analysing a newly selected image.

        Args:
            image: Decoded RGBA pixel array
            file_name: Original file name
            file_size: File size in bytes

        Returns:
            Generation number the pending analysis must report back with
        """
        self._transition(Event.FILE_ACCEPTED)
        state = self.state
        state.generation += 1
        state.image = image
        state.file_name = file_name
        state.file_size = file_size
        state.result = None
        state.error = None
        state.regions = ()
        state.show_heatmap = False
        state.heatmap = None
        return state.generation

    def reject_file(self, message: str = INVALID_TYPE_MESSAGE) -> None:
        """Record an invalid upload, keeping any earlier image and result."""
        was_loading = self.state.loading
        self._transition(Event.FILE_REJECTED)
        if was_loading:
            # The pending analysis belongs to a file the user moved away from
            self.state.generation += 1
        self.state.error = message

    def complete_analysis(self, generation: int, result: AnalysisResult,
                          regions: List[Region]) -> bool:
        """
        Store the outcome of an analysis.

        Args:
            generation: Generation returned by ``accept_file``
            result: Verdict for the file
            regions: Sampled regions for the file

        Returns:
            True if applied, False if the analysis was stale and discarded
        """
        state = self.state
        if generation != state.generation or state.phase is not Phase.LOADING:
            logger.info("Discarding stale analysis (generation %d, current %d)",
                        generation, state.generation)
            return False

        self._transition(Event.ANALYSIS_DONE)
        state.regions = tuple(regions)
        state.result = result
        state.history = [result] + state.history[:self.history_limit - 1]
        return True

    def reset(self) -> None:
        self._transition(Event.RESET)
        state = self.state
        state.generation += 1
        state.image = None
        state.file_name = None
        state.file_size = 0
        state.result = None
        state.error = None
        state.regions = ()
        state.show_heatmap = False
        state.heatmap = None
        self.heatmap_cache.clear()

    def toggle_heatmap(self) -> Optional[Heatmap]:
        """
        Flip heatmap visibility, rendering it on first toggle-on.

        Returns:
            The heatmap when it is now shown, otherwise None
        """
        self._transition(Event.TOGGLE_HEATMAP)
        state = self.state
        state.show_heatmap = not state.show_heatmap
        if not state.show_heatmap:
            return None

        state.heatmap = self.heatmap_cache.get(state.image, state.regions)
        return state.heatmap

    def _transition(self, event: Event) -> Phase:
        key = (self.state.phase, event)
        if key not in TRANSITIONS:
            raise InvalidTransitionError(*key)
        next_phase = TRANSITIONS[key]
        logger.debug("%s --%s--> %s", self.state.phase.value, event.value, next_phase.value)
        self.state.phase = next_phase
        return next_phase
