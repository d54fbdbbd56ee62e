"""Multi-pass receipt scanning with early exit and request supersession.

A scan runs OCR under up to three preprocessing profiles in sequence:

    normal -> [accept | high-contrast] -> [accept | low-contrast] -> done

A pass result is accepted once it has a non-zero amount with confidence of
at least ``accept_confidence``. Each pass checks the caller's cancellation
predicate before starting and again after OCR returns.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Protocol, Sequence

from .config import OCR_MODES
from .parsers import ExtractedData, extract_amounts_from_text, get_no_amount_error_message

logger = logging.getLogger(__name__)

DEFAULT_ACCEPT_CONFIDENCE = 0.75

# Progress floor reported before a retry pass starts
PASS_PROGRESS_MARKERS = {
    'high-contrast': 50,
    'low-contrast': 75,
}

SCAN_FAILURE_MESSAGE = "Could not process image. Try a different photo."

ProgressCallback = Callable[[int], None]
ContinuePredicate = Callable[[], bool]


class OCREngine(Protocol):
    """What the scanner needs from an OCR backend."""

    def preprocess(self, image: Any, mode: str) -> Any: ...

    async def recognize(self, image: Any,
                        on_progress: Optional[Callable[[float], None]] = None) -> str: ...


def quality_score(data: ExtractedData) -> float:
    """Rank pass results: a found amount dominates, then confidence, then options."""
    amount_found_score = 1.5 if data.amount > 0 else 0.0
    options_score = min(0.25, len(data.all_amounts) * 0.03)
    return amount_found_score + data.confidence + options_score


def select_best_result(results: Sequence[ExtractedData]) -> Optional[ExtractedData]:
    """Best result by quality score; the earliest pass wins ties."""
    if not results:
        return None
    return max(results, key=quality_score)


def needs_another_pass(result: Optional[ExtractedData], accept_confidence: float) -> bool:
    return result is None or result.amount == 0 or result.confidence < accept_confidence


class MonotonicProgress:
    """Forward progress only when it does not go backwards."""

    def __init__(self, on_progress: ProgressCallback, should_continue: ContinuePredicate):
        self.on_progress = on_progress
        self.should_continue = should_continue
        self.latest = 0

    def __call__(self, progress: int):
        if not self.should_continue():
            return
        self.latest = max(self.latest, progress)
        self.on_progress(self.latest)


async def run_ocr_for_mode(image: Any,
                           mode: str,
                           engine: OCREngine,
                           on_progress: ProgressCallback,
                           should_continue: ContinuePredicate) -> Optional[ExtractedData]:
    """
    Run one OCR pass and score its text.

    Returns:
        ExtractedData, or None if cancelled before or during the pass
    """
    if not should_continue():
        return None

    processed = engine.preprocess(image, mode)

    def forward_progress(fraction: float):
        if not should_continue():
            return
        on_progress(round(fraction * 100))

    text = await engine.recognize(processed, on_progress=forward_progress)

    if not should_continue():
        logger.debug(f"Discarding {mode} pass result of a superseded scan")
        return None

    result = extract_amounts_from_text(text)
    logger.info(f"OCR pass {mode}: amount={result.amount}, confidence={result.confidence:.2f}, "
                f"candidates={len(result.all_amounts)}")
    return result


async def scan_receipt_image(image: Any,
                             engine: OCREngine,
                             on_progress: Optional[ProgressCallback] = None,
                             should_continue: Optional[ContinuePredicate] = None,
                             accept_confidence: float = DEFAULT_ACCEPT_CONFIDENCE,
                             modes: Sequence[str] = OCR_MODES) -> Optional[ExtractedData]:
    """
    Scan a receipt image with up to one OCR pass per mode.

    Args:
        image: Receipt image as loaded by the engine
        engine: OCR backend
        on_progress: Receives integer percent progress, never decreasing
        should_continue: Returns False once this scan has been superseded
        accept_confidence: Confidence that ends the scan early
        modes: OCR modes in pass order

    Returns:
        The best-quality ExtractedData, or None if the scan was cancelled
    """
    on_progress = on_progress or (lambda _: None)
    should_continue = should_continue or (lambda: True)
    report_progress = MonotonicProgress(on_progress, should_continue)

    results: List[ExtractedData] = []
    first_result = await run_ocr_for_mode(image, modes[0], engine, report_progress, should_continue)
    if first_result is None or not should_continue():
        return None
    results.append(first_result)

    for mode in modes[1:]:
        if not needs_another_pass(select_best_result(results), accept_confidence):
            break

        report_progress(PASS_PROGRESS_MARKERS.get(mode, report_progress.latest))
        result = await run_ocr_for_mode(image, mode, engine, report_progress, should_continue)
        if result is not None:
            results.append(result)

    if not should_continue():
        return None

    return select_best_result(results)


@dataclass
class ScanState:
    """UI-facing state of the current scan."""
    is_processing: bool = False
    progress: int = 0
    extracted_data: Optional[ExtractedData] = None
    error: Optional[str] = None


class ScanSession:
    """
    Single-flight scan session.

    Starting a scan bumps a generation token. Every state mutation first
    compares its token with the current one, so only the latest scan updates
    the state. Superseded OCR work runs to completion and is discarded.
    """

    def __init__(self,
                 engine: OCREngine,
                 accept_confidence: float = DEFAULT_ACCEPT_CONFIDENCE,
                 modes: Sequence[str] = OCR_MODES,
                 on_progress: Optional[ProgressCallback] = None):
        self.engine = engine
        self.on_progress = on_progress
        self.accept_confidence = accept_confidence
        self.modes = tuple(modes)
        self.state = ScanState()
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def invalidate(self):
        """Abandon any in-flight scan, e.g. when the caller goes away."""
        self._generation += 1
        self.state.is_processing = False

    def reset(self):
        """Clear results so the session can be reused."""
        self.invalidate()
        self.state = ScanState()

    def _set_progress(self, generation: int, progress: int):
        if self.is_current(generation):
            self.state.progress = progress
            if self.on_progress:
                self.on_progress(progress)

    async def scan(self, image: Any) -> Optional[ExtractedData]:
        """
        Scan an image, superseding any scan already in flight.

        OCR failures never propagate: they leave a generic error message in
        the state and the session stays usable.

        Returns:
            ExtractedData for this scan, or None if it failed or was superseded
        """
        self._generation += 1
        generation = self._generation
        self.state = ScanState(is_processing=True)

        try:
            result = await scan_receipt_image(
                image,
                self.engine,
                on_progress=lambda progress: self._set_progress(generation, progress),
                should_continue=lambda: self.is_current(generation),
                accept_confidence=self.accept_confidence,
                modes=self.modes,
            )

            if result is None or not self.is_current(generation):
                return None

            self.state.extracted_data = result
            self.state.progress = 100
            self.state.error = get_no_amount_error_message(result)
            return result

        except Exception as e:
            logger.error(f"OCR error: {e}")
            if self.is_current(generation):
                self.state.error = SCAN_FAILURE_MESSAGE
            return None

        finally:
            if self.is_current(generation):
                self.state.is_processing = False
