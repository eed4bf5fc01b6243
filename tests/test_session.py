"""Tests for the client session state machine."""

import httpx
import pytest

from image_insights.client.preview import Bounds, Viewport
from image_insights.client.relay import RelayClient
from image_insights.client.render import RenderMode
from image_insights.client.session import (
    ANALYSIS_FAILED_MESSAGE,
    EMPTY_QUESTION_MESSAGE,
    NO_IMAGE_MESSAGE,
    NOT_AN_IMAGE_MESSAGE,
    InsightsSession,
    Progress,
    Variant,
)
from image_insights.core.options import DescriptionLength, Language


class FakeRelay:
    """Records what the session sends and answers with a canned handler."""

    def __init__(self, respond=None):
        self.requests = []
        self.loading_during_call = []
        self.session = None
        self.respond = respond or (lambda request: httpx.Response(200, json={"insights": "A red square."}))
        self.client = RelayClient("http://relay.test", transport=httpx.MockTransport(self._handle))

    def _handle(self, request):
        self.requests.append(request)
        self.loading_during_call.append(self.session.loading)
        return self.respond(request)


class Clock:
    def __init__(self, *ticks):
        self.ticks = list(ticks)

    def __call__(self):
        return self.ticks.pop(0)


@pytest.fixture
def notes():
    return []


@pytest.fixture
def make_session(notes):
    def _make(variant=Variant.INSIGHTS, respond=None, clock=None):
        relay = FakeRelay(respond)
        kwargs = {"clock": clock} if clock else {}
        session = InsightsSession(
            relay.client, Viewport(Bounds(300, 100)), variant=variant, notify=notes.append, **kwargs
        )
        relay.session = session
        return session, relay
    return _make


class TestSelectAndRemove:
    """Tests for image selection, preview, and reset."""

    def test_initial_state(self, make_session):
        session, _ = make_session()
        assert session.progress is Progress.IDLE
        assert session.image is None and session.preview is None
        assert session.language is Language.ENGLISH
        assert session.length is DescriptionLength.SHORT
        assert not session.loading
        assert not session.can_submit

    def test_select_builds_preview_and_advances(self, make_session, png_bytes):
        session, _ = make_session()
        session.error = "stale"
        session.result = "stale"
        assert session.select_image(png_bytes, "image/png", "a.png")
        assert session.progress is Progress.IMAGE_SELECTED
        assert session.preview is not None
        assert (session.preview.width, session.preview.height) == (200, 100)
        assert session.result is None and session.error is None

    def test_non_image_mime_rejected(self, make_session):
        session, _ = make_session()
        assert not session.select_image(b"%PDF-1.7", "application/pdf")
        assert session.image is None
        assert session.error == NOT_AN_IMAGE_MESSAGE
        assert session.progress is Progress.IDLE

    def test_undecodable_image_keeps_image_without_preview(self, make_session):
        session, _ = make_session()
        assert session.select_image(b"garbage", "image/png")
        assert session.image is not None
        assert session.preview is None

    def test_remove_resets_everything(self, make_session, png_bytes):
        session, _ = make_session()
        session.select_image(png_bytes, "image/png")
        session.submit()
        assert session.result == "A red square."

        session.remove_image()
        assert session.image is None and session.preview is None
        assert session.result is None and session.error is None
        assert session.progress is Progress.IDLE

        # re-upload shows no stale result
        session.select_image(png_bytes, "image/png")
        assert session.result is None
        assert session.rendered() is None


class TestViewportListener:
    """Tests for preview regeneration on resize."""

    def test_resize_regenerates_preview_while_mounted(self, make_session, png_bytes):
        session, _ = make_session()
        with session.mounted():
            assert session.viewport.listener_count == 1
            session.select_image(png_bytes, "image/png")
            session.viewport.resize(Bounds(100, 100))
            assert (session.preview.width, session.preview.height) == (100, 50)
        assert session.viewport.listener_count == 0
        assert not session.is_open

        session.viewport.resize(Bounds(40, 40))
        assert session.preview.width == 100

    def test_listener_removed_even_on_error(self, make_session):
        session, _ = make_session()
        with pytest.raises(RuntimeError):
            with session.mounted():
                raise RuntimeError("unmount")
        assert session.viewport.listener_count == 0

    def test_resize_without_image_is_noop(self, make_session):
        session, _ = make_session()
        session.open()
        session.open()
        assert session.viewport.listener_count == 1
        session.viewport.resize(Bounds(50, 50))
        assert session.preview is None
        session.close()


class TestParameters:
    def test_language_advances_progress_in_insights_variant(self, make_session, png_bytes):
        session, _ = make_session()
        session.set_language("french")
        assert session.progress is Progress.IDLE  # nothing selected yet
        session.select_image(png_bytes, "image/png")
        session.set_language(Language.HINDI)
        assert session.language is Language.HINDI
        assert session.progress is Progress.PARAMETERS_SELECTED

    def test_length_does_not_advance(self, make_session, png_bytes):
        session, _ = make_session()
        session.select_image(png_bytes, "image/png")
        session.set_length("medium")
        assert session.length is DescriptionLength.MEDIUM
        assert session.progress is Progress.IMAGE_SELECTED

    def test_invalid_language_rejected(self, make_session):
        session, _ = make_session()
        with pytest.raises(ValueError):
            session.set_language("klingon")


class TestSubmit:
    """Tests for Submit preconditions, success, and failure."""

    def test_without_image_makes_no_call(self, make_session, notes):
        session, relay = make_session()
        assert not session.submit()
        assert relay.requests == []
        assert session.error == NO_IMAGE_MESSAGE
        assert notes[-1].level == "error"
        assert not session.loading

    @pytest.mark.parametrize("question", ["", "   ", "\n\t "])
    def test_blank_question_makes_no_call(self, make_session, png_bytes, notes, question):
        session, relay = make_session(Variant.QUESTION)
        session.select_image(png_bytes, "image/png")
        session.set_question(question)
        assert not session.submit()
        assert relay.requests == []
        assert session.error == EMPTY_QUESTION_MESSAGE
        assert notes[-1].description == EMPTY_QUESTION_MESSAGE

    def test_success_sends_one_request_with_parameters(self, make_session, png_bytes, notes):
        session, relay = make_session(clock=Clock(10.0, 12.5))
        session.select_image(png_bytes, "image/png", "a.png")
        session.set_parameters("spanish", "long")

        assert session.submit()

        assert len(relay.requests) == 1
        body = relay.requests[0].content
        assert b"spanish" in body and b"long" in body and png_bytes in body
        assert session.result == "A red square."
        assert session.progress is Progress.COMPLETED
        assert notes[-1].title == "Success"
        assert notes[-1].description == "Took 2.50 seconds to generate insights."

    def test_question_variant_sends_question(self, make_session, png_bytes):
        session, relay = make_session(Variant.QUESTION)
        session.select_image(png_bytes, "image/png")
        session.set_question("What colour is it?")
        assert session.submit()
        body = relay.requests[0].content
        assert b"What colour is it?" in body
        assert b'name="language"' not in body

    def test_loading_only_during_call_on_success(self, make_session, png_bytes):
        session, relay = make_session()
        session.select_image(png_bytes, "image/png")
        assert not session.loading
        session.submit()
        assert relay.loading_during_call == [True]
        assert not session.loading

    def test_failure_sets_generic_error(self, make_session, png_bytes, notes):
        session, relay = make_session(
            respond=lambda request: httpx.Response(500, json={"error": "Failed to generate insights"}),
            clock=Clock(1.0, 1.25),
        )
        session.select_image(png_bytes, "image/png")
        assert not session.submit()
        assert relay.loading_during_call == [True]
        assert not session.loading
        assert session.result is None
        assert session.error == ANALYSIS_FAILED_MESSAGE
        assert session.progress is Progress.FAILED
        assert notes[-1].description == "Failed to generate insights. Took 0.25 seconds. Please try again."

    def test_missing_insights_field_is_failure(self, make_session, png_bytes):
        session, _ = make_session(respond=lambda request: httpx.Response(200, json={"text": "hi"}))
        session.select_image(png_bytes, "image/png")
        assert not session.submit()
        assert session.error == ANALYSIS_FAILED_MESSAGE

    def test_unexpected_exception_is_a_failure(self, make_session, png_bytes, notes):
        def boom(request):
            raise RuntimeError("handler bug")

        session, _ = make_session(respond=boom)
        session.select_image(png_bytes, "image/png")
        assert not session.submit()
        assert not session.loading
        assert session.result is None
        assert session.error == ANALYSIS_FAILED_MESSAGE
        assert session.progress is Progress.FAILED
        assert notes[-1].level == "error"
        assert notes[-1].description.startswith("Failed to generate insights.")

    def test_invalid_relay_url_is_a_failure(self, png_bytes, notes):
        session = InsightsSession(
            RelayClient("http://localhost:notaport"), Viewport(Bounds(300, 100)), notify=notes.append
        )
        session.select_image(png_bytes, "image/png")
        assert not session.submit()
        assert not session.loading
        assert session.error == ANALYSIS_FAILED_MESSAGE
        assert session.progress is Progress.FAILED
        assert notes[-1].level == "error"

    def test_in_flight_submit_is_refused(self, make_session, png_bytes):
        session, relay = make_session()
        session.select_image(png_bytes, "image/png")
        session.loading = True
        assert not session.submit()
        assert relay.requests == []

    def test_resubmit_after_failure(self, make_session, png_bytes):
        answers = [httpx.Response(502), httpx.Response(200, json={"insights": "ok"})]
        session, relay = make_session(respond=lambda request: answers.pop(0))
        session.select_image(png_bytes, "image/png")
        assert not session.submit()
        assert session.submit()
        assert session.error is None
        assert session.result == "ok"
        assert len(relay.requests) == 2


class TestResult:
    """Tests for rendering and copying the result."""

    @pytest.mark.parametrize(
        "insights,mode",
        [
            ('{"a":1}', RenderMode.STRUCTURED_DATA),
            ("plain sentence", RenderMode.PLAIN_TEXT),
            ("use `code`", RenderMode.FORMATTED_TEXT),
        ],
    )
    def test_rendered_mode_follows_relay_text(self, make_session, png_bytes, insights, mode):
        session, _ = make_session(respond=lambda request: httpx.Response(200, json={"insights": insights}))
        session.select_image(png_bytes, "image/png")
        session.submit()
        assert session.rendered().mode is mode

    def test_copy_writes_result(self, make_session, png_bytes, notes):
        session, _ = make_session()
        session.select_image(png_bytes, "image/png")
        session.submit()
        copied = []
        assert session.copy_result(copied.append)
        assert copied == ["A red square."]
        assert notes[-1].description == "Insights copied to clipboard"

    def test_copy_without_result_does_nothing(self, make_session, notes):
        session, _ = make_session()
        copied = []
        assert not session.copy_result(copied.append)
        assert copied == []
        assert notes == []

    def test_copy_failure_is_reported(self, make_session, png_bytes, notes):
        session, _ = make_session()
        session.select_image(png_bytes, "image/png")
        session.submit()

        def broken(text):
            raise OSError("clipboard unavailable")

        assert not session.copy_result(broken)
        assert notes[-1].description == "Failed to copy insights"
