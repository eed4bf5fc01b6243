"""
Purpose:
- Everything the page remembers for one user: image, preview, parameters, result, loading/error, progress.
- Enforces submit preconditions locally and allows a single request in flight.
- Regenerates the preview whenever the viewport is resized while an image is present.

How it's used:
- The Streamlit page keeps one InsightsSession in st.session_state and calls these
  methods from widget callbacks; notifications go to whatever `notify` it was given (toasts).
- `with session.mounted():` (or open()/close()) scopes the viewport listener.
"""

from __future__ import annotations
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, Optional

from PIL import UnidentifiedImageError

from ..core.options import DEFAULT_LANGUAGE, DEFAULT_LENGTH, DescriptionLength, Language
from .preview import Bounds, Preview, Viewport, render_preview
from .relay import (
    InsightParameters,
    QuestionParameters,
    RelayClient,
    RelayError,
    RequestParameters,
    UploadedImage,
)
from .render import RenderedResult, render_result

logger = logging.getLogger(__name__)

# --- User-facing text --------------------------------------------------------

NO_IMAGE_MESSAGE = "Please upload an image first."
EMPTY_QUESTION_MESSAGE = "Please enter a question about the image."
NOT_AN_IMAGE_MESSAGE = "Please choose an image file."
ANALYSIS_FAILED_MESSAGE = "An error occurred while analyzing the image. Please try again."

class Variant(str, Enum):
    INSIGHTS = "insights"   # language + length
    QUESTION = "question"   # free-text question

class Progress(str, Enum):
    IDLE = "idle"
    IMAGE_SELECTED = "image-selected"
    PARAMETERS_SELECTED = "parameters-selected"
    SUBMITTING = "submitting"
    COMPLETED = "completed"
    FAILED = "failed"

@dataclass
class Notification:
    title: str
    description: str
    level: str = "info"     # "success" | "error" | "info"

Notifier = Callable[[Notification], None]
ClipboardWriter = Callable[[str], None]

class InsightsSession:
    def __init__(
        self,
        relay: RelayClient,
        viewport: Viewport,
        variant: Variant = Variant.INSIGHTS,
        notify: Optional[Notifier] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.relay = relay
        self.viewport = viewport
        self.variant = variant
        self.notify: Notifier = notify or (lambda n: None)
        self.clock = clock

        self.image: Optional[UploadedImage] = None
        self.preview: Optional[Preview] = None
        self.language: Language = DEFAULT_LANGUAGE
        self.length: DescriptionLength = DEFAULT_LENGTH
        self.question: str = ""
        self.result: Optional[str] = None
        self.error: Optional[str] = None
        self.loading: bool = False
        self.progress: Progress = Progress.IDLE

        self._unsubscribe: Optional[Callable[[], None]] = None

    # --- Lifecycle -----------------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self._unsubscribe is not None

    def open(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.viewport.subscribe(self._on_resize)

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    @contextmanager
    def mounted(self) -> Iterator["InsightsSession"]:
        self.open()
        try:
            yield self
        finally:
            self.close()

    def _on_resize(self, bounds: Bounds) -> None:
        if self.image is not None:
            self._refresh_preview()

    # --- Image ---------------------------------------------------------------

    def select_image(self, data: bytes, mime_type: str, filename: Optional[str] = None) -> bool:
        if not (mime_type or "").startswith("image/"):
            self.error = NOT_AN_IMAGE_MESSAGE
            return False
        self.image = UploadedImage(data=data, mime_type=mime_type, filename=filename)
        self.result = None
        self.error = None
        self.progress = Progress.IMAGE_SELECTED
        self._refresh_preview()
        return True

    def _refresh_preview(self) -> None:
        try:
            self.preview = render_preview(self.image.data, self.viewport.bounds)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            # keep the image; the relay decides whether it can use it
            logger.warning("Could not build preview for %s: %r", self.image.filename, e)
            self.preview = None

    def remove_image(self) -> None:
        self.image = None
        self.preview = None
        self.result = None
        self.error = None
        self.progress = Progress.IDLE

    # --- Parameters ----------------------------------------------------------

    def set_language(self, language: Language | str) -> None:
        self.language = Language(language)
        if self.progress is Progress.IMAGE_SELECTED and self.variant is Variant.INSIGHTS:
            self.progress = Progress.PARAMETERS_SELECTED

    def set_length(self, length: DescriptionLength | str) -> None:
        self.length = DescriptionLength(length)

    def set_parameters(self, language: Language | str, length: DescriptionLength | str) -> None:
        self.set_language(language)
        self.set_length(length)

    def set_question(self, text: str) -> None:
        self.question = text or ""

    def parameters(self) -> RequestParameters:
        if self.variant is Variant.QUESTION:
            return QuestionParameters(question=self.question)
        return InsightParameters(language=self.language, length=self.length)

    # --- Submit --------------------------------------------------------------

    @property
    def can_submit(self) -> bool:
        return self.image is not None and not self.loading

    def _validation_error(self) -> Optional[str]:
        if self.image is None:
            return NO_IMAGE_MESSAGE
        if self.variant is Variant.QUESTION and not self.question.strip():
            return EMPTY_QUESTION_MESSAGE
        return None

    def submit(self) -> bool:
        """
        Validate, then make exactly one relay call. Returns True when a result was stored.
        `loading` is set for the duration of the call and always cleared afterwards.
        """
        if self.loading:
            return False

        problem = self._validation_error()
        if problem:
            self.error = problem
            self.notify(Notification("Error", problem, "error"))
            return False

        self.loading = True
        self.error = None
        self.progress = Progress.SUBMITTING
        started = self.clock()
        try:
            text = self.relay.generate(self.image, self.parameters())
        except Exception as e:
            if isinstance(e, RelayError):
                logger.warning("Insight request failed: %s", e)
            else:
                logger.exception("Insight request failed unexpectedly")
            self.error = ANALYSIS_FAILED_MESSAGE
            self.progress = Progress.FAILED
            self.notify(Notification(
                "Error",
                f"Failed to generate insights. Took {self.clock() - started:.2f} seconds. Please try again.",
                "error",
            ))
            return False
        finally:
            self.loading = False

        self.result = text
        self.progress = Progress.COMPLETED
        self.notify(Notification(
            "Success",
            f"Took {self.clock() - started:.2f} seconds to generate insights.",
            "success",
        ))
        return True

    # --- Result --------------------------------------------------------------

    def rendered(self) -> Optional[RenderedResult]:
        return render_result(self.result) if self.result else None

    def copy_result(self, clipboard: ClipboardWriter) -> bool:
        """
        Write the result through a synchronous clipboard writer that raises on failure.
        The Streamlit page does not use this: browser clipboard writes can't be confirmed
        from Python, so it exposes st.code's own copy control instead.
        """
        if not self.result:
            return False
        try:
            clipboard(self.result)
        except Exception as e:
            logger.error("Failed to copy text: %r", e)
            self.notify(Notification("Error", "Failed to copy insights", "error"))
            return False
        self.notify(Notification("Copied!", "Insights copied to clipboard", "info"))
        return True
