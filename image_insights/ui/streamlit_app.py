"""
Purpose:
- Browser front end: upload an image, pick language/length (or ask a question), show the answer.
- Thin layer over InsightsSession; all state transitions live there.

Run:
- streamlit run image_insights/ui/streamlit_app.py   (relay must be up at settings.relay_url)
"""

import streamlit as st

from image_insights.client.preview import Bounds, Viewport
from image_insights.client.relay import RelayClient
from image_insights.client.render import RenderMode, RenderedResult
from image_insights.client.session import InsightsSession, Notification, Variant
from image_insights.core.logging import configure_logging
from image_insights.core.options import DescriptionLength, Language
from image_insights.core.settings import settings

configure_logging(settings.log_level)

st.set_page_config(page_title="AI Image Insights", page_icon="🖼️", layout="wide")

TOAST_ICONS = {"success": "✅", "error": "⚠️", "info": "📋"}

def _toast(n: Notification) -> None:
    st.toast(f"**{n.title}**: {n.description}", icon=TOAST_ICONS.get(n.level))

def _session(variant: Variant) -> InsightsSession:
    key = f"session-{variant.value}"
    if key not in st.session_state:
        viewport = Viewport(Bounds.from_width(settings.preview_container_width, settings.preview_aspect))
        session = InsightsSession(RelayClient(settings.relay_url), viewport, variant=variant, notify=_toast)
        # Streamlit has no unmount hook; the listener lives as long as the browser session
        session.open()
        st.session_state[key] = session
        st.session_state[f"{key}-uploader"] = 0
    session = st.session_state[key]
    session.notify = _toast   # toasts are bound to the current script run
    return session

def _show_result(rendered: RenderedResult) -> None:
    if rendered.mode is RenderMode.STRUCTURED_DATA:
        st.code(rendered.body, language="json")
    elif rendered.mode is RenderMode.FORMATTED_TEXT:
        for segment in rendered.segments:
            if segment.code:
                st.code(segment.text, language=segment.language or None)
            else:
                st.markdown(segment.text)
    elif rendered.mode is RenderMode.MARKUP:
        if settings.render_unsafe_markup:
            st.markdown(rendered.body, unsafe_allow_html=True)
        else:
            st.html(rendered.body)
    else:
        st.text(rendered.body)

# --- Sidebar -----------------------------------------------------------------

with st.sidebar:
    mode = st.radio("Mode", ["Image Insights", "Ask a Question"])
    variant = Variant.INSIGHTS if mode == "Image Insights" else Variant.QUESTION
    session = _session(variant)
    width = st.slider("Preview width", min_value=240, max_value=1200,
                      value=int(session.viewport.bounds.width), step=20)
    session.viewport.resize(Bounds.from_width(width, settings.preview_aspect))

uploader_key = f"session-{variant.value}-uploader"

st.title("AI Image Insights")
left, right = st.columns(2)

# --- Inputs ------------------------------------------------------------------

with left:
    st.subheader("1. Upload an Image")
    st.caption("Select an image for analysis")
    if session.preview is not None:
        p = session.preview
        st.markdown(
            f'<img src="{p.data_url}" width="{p.width}" height="{p.height}" alt="Uploaded image">',
            unsafe_allow_html=True,
        )
        if st.button("✕ Remove image"):
            session.remove_image()
            st.session_state[uploader_key] += 1
            st.session_state[f"{uploader_key}-token"] = None
            st.rerun()
    upload = st.file_uploader("Upload image for analysis", type=["png", "jpg", "jpeg", "gif", "webp", "bmp"],
                              key=f"{uploader_key}-{st.session_state[uploader_key]}")
    token = (upload.name, upload.size) if upload is not None else None
    if token != st.session_state.get(f"{uploader_key}-token"):
        st.session_state[f"{uploader_key}-token"] = token
        if upload is not None:
            session.select_image(upload.getvalue(), upload.type or "", upload.name)
        else:
            session.remove_image()
        st.rerun()

    if variant is Variant.INSIGHTS:
        st.subheader("2. Language")
        st.caption("Choose the language for the generated insights")
        languages = list(Language)
        lang = st.selectbox("Language", languages, index=languages.index(session.language),
                            format_func=lambda l: l.label, label_visibility="collapsed")
        if lang is not session.language:
            session.set_language(lang)

        st.subheader("3. Length")
        st.caption("Select the desired length of the insights")
        lengths = list(DescriptionLength)
        size = st.radio("Length", lengths, index=lengths.index(session.length),
                        format_func=lambda d: d.label, horizontal=True, label_visibility="collapsed")
        session.set_length(size)
    else:
        st.subheader("2. Your Question")
        question = st.text_area("Ask anything about the image", value=session.question)
        session.set_question(question)

    error_slot = st.empty()

    label = "Analyze Image" if variant is Variant.INSIGHTS else "Ask"
    if st.button(label, disabled=not session.can_submit, use_container_width=True,
                 help=None if session.image else "Please upload an image first"):
        with st.spinner("Analyzing..."):
            session.submit()

    if session.error:
        error_slot.error(session.error)

# --- Result ------------------------------------------------------------------

with right:
    st.subheader("AI-Generated Insights")
    rendered = session.rendered()
    if rendered is not None:
        _show_result(rendered)
        # the browser performs the copy and shows its own confirmation
        with st.expander("📋 Copy insights"):
            st.code(session.result, language=None)
    else:
        st.caption("_Insights will appear here after analysis_")

st.caption("Powered by Cloudflare Workers AI using Meta Llama 3.2 Vision")
