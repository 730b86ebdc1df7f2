"""
detect_ui.py — Catch Photo Species Detection (debug)
-----------------------------------------------------

Streamlit page that sends a photo to the running detection API exactly as
the mobile app does and shows what comes back.

Process Overview:
1. Upload a JPEG/PNG catch photo
2. Re-encode as JPEG (quality 90) and wrap it in a base64 data URL
3. POST {"image": ...} to DETECT_API_URL
4. Render suggestions, the unmatched outcome, or the error + debug payload

Dependencies:
- Streamlit for the UI
- Requests for the API call
- Pillow (via tools.image_utils) for re-encoding
"""

from io import BytesIO

import requests
import streamlit as st

from config.settings import DETECT_API_URL
from tools.image_utils import encode_image_as_data_url

REQUEST_TIMEOUT = 60

SOURCE_BADGES = {"database": "📗 catalogue", "ai": "🤖 IA"}


def post_detection(image_url: str) -> tuple[int, dict]:
    r = requests.post(DETECT_API_URL, json={"image": image_url}, timeout=REQUEST_TIMEOUT)
    try:
        body = r.json()
    except ValueError:
        body = {"error": r.text[:500]}
    return r.status_code, body


st.write("Upload a catch photo to see the species suggestions returned by the detection API.")
st.caption(f"Endpoint: `{DETECT_API_URL}`")

uploaded = st.file_uploader("Catch photo", type=["jpg", "jpeg", "png", "webp"])

if uploaded is not None:
    st.image(uploaded, width=320)

    if st.button("Detect species"):
        try:
            image_url = encode_image_as_data_url(BytesIO(uploaded.getvalue()))
        except OSError as e:
            st.error(f"Couldn't read image: {e}")
            st.stop()

        with st.spinner("Analysing..."):
            try:
                status, body = post_detection(image_url)
            except requests.RequestException as e:
                st.error(f"API unreachable: {e}")
                st.stop()

        suggestions = body.get("suggestions") or []

        if status != 200:
            st.error(f"{status} — {body.get('error', 'Erreur')}")
            if body.get("debug"):
                with st.expander("Debug"):
                    st.json(body["debug"])
        elif body.get("unmatched"):
            st.warning(body.get("error") or "Espece non reconnue")
        else:
            for i, s in enumerate(suggestions, start=1):
                badge = SOURCE_BADGES.get(s.get("source"), s.get("source", ""))
                line = f"{i}. **{s['species']}** — {s['confidence']}% · {badge}"
                if s.get("unmatched"):
                    line += " · ⚠️ hors liste"
                st.markdown(line)

        with st.expander("Raw response"):
            st.json(body)
