"""
main.py — Streamlit Debug Console Navigation
---------------------------------------------

Entry point for the species detection debug console:

    streamlit run main.py

Pages:
✅ Detect Species — send a photo to the detection API
✅ Species Directory — inspect the species table as the pipeline sees it
   (hidden when APP_MODE=demo)

The detection API itself is served by `web.app` (`catchlog-detect-api`).

Dependencies:
- streamlit
"""

import streamlit as st
from config.settings import APP_MODE

# --- Configure the main Streamlit app window ---
st.set_page_config(
    page_title="Catch Log — Species Detection Console",
    page_icon="🎣",               # Tab icon
    layout="wide",                # Use full width of the browser
    initial_sidebar_state="expanded"
)

pages = [st.Page("app/detect_ui.py", title="Detect Species", icon="🐟", default=True)]

# --- Hide Pages
if APP_MODE.lower() != "demo":
    pages.append(st.Page("app/directory_ui.py", title="Species Directory", icon="📚"))

# --- Create the navigation sidebar ---
pg = st.navigation(pages)

# --- Display page title ---
st.title(pg.title)

# --- Run the selected page from the sidebar ---
pg.run()
