"""
Upload-to-result pipeline tying the sampler, verdict generator and session
store together.
"""
import logging
import time
from typing import Callable, Optional

from detectoo.image_handler import ImageUploadHandler, ImagePreprocessor
from detectoo.region_sampler import RegionSampler
from detectoo.session import SessionStore
from detectoo.verdict import SyntheticVerdictGenerator

logger = logging.getLogger(__name__)


class DetectionPipeline:
    """Runs one upload through validation, decoding and analysis."""

    ANALYSIS_DELAY = 2.0  # seconds

    def __init__(self, sampler: Optional[RegionSampler] = None,
                 verdict_generator: Optional[SyntheticVerdictGenerator] = None,
                 delay: float = ANALYSIS_DELAY,
                 sleep: Callable[[float], None] = time.sleep):
        self.sampler = sampler or RegionSampler()
        self.verdict_generator = verdict_generator or SyntheticVerdictGenerator()
        self.delay = delay
        self.sleep = sleep

    def submit(self, store: SessionStore, uploaded_file) -> Optional[int]:
        """
        Validate and decode an upload and put the store into LOADING.

        Args:
            store: Session store to update
            uploaded_file: Streamlit uploaded file object

        Returns:
            Generation of the started analysis, or None if the file was rejected
        """
        is_valid, error_msg = ImageUploadHandler.validate_image(uploaded_file)
        if not is_valid:
            store.reject_file(error_msg)
            return None

        image = ImageUploadHandler.load_image(uploaded_file)
        if image is None:
            store.reject_file(f"Unable to read image file: {uploaded_file.name}")
            return None

        pixels = ImagePreprocessor.to_rgba_array(image)
        return store.accept_file(pixels, uploaded_file.name, uploaded_file.size)

    def analyze(self, store: SessionStore, generation: int, pixels,
                file_name: str, file_size: int) -> bool:
        """
        Wait out the analysis delay, then sample regions and generate a verdict.

        Args:
            store: Session store to report back to
            generation: Generation returned by ``submit``
            pixels: Decoded RGBA pixel array of the upload
            file_name: Original file name
            file_size: File size in bytes

        Returns:
            True if the result was applied to the store
        """
        if self.delay > 0:
            self.sleep(self.delay)

        regions = self.sampler.sample_regions(pixels)
        result = self.verdict_generator.generate(file_name, file_size)
        logger.info("Analysed %s: %s (%d%%), %d regions",
                    file_name, result.verdict_label, result.confidence, len(regions))
        return store.complete_analysis(generation, result, regions)

    def resume(self, store: SessionStore) -> bool:
        """
        Finish the analysis of the current upload if it was left in LOADING.

        A Streamlit rerun can stop the script after ``submit`` but before
        ``analyze``; the next run calls this to bring the store to RESULT.

        Args:
            store: Session store to check

        Returns:
            True if a pending analysis was completed
        """
        state = store.state
        if not state.loading or state.image is None:
            return False

        logger.info("Resuming interrupted analysis of %s", state.file_name)
        return self.analyze(store, state.generation, state.image,
                            state.file_name, state.file_size)

    def run(self, store: SessionStore, uploaded_file) -> bool:
        """Submit an upload and analyse it right away."""
        generation = self.submit(store, uploaded_file)
        if generation is None:
            return False
        info = ImageUploadHandler.get_file_info(uploaded_file)
        return self.analyze(store, generation, store.state.image,
                            info['filename'], info['file_size'])
