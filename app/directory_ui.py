"""
directory_ui.py — Species Directory Inspector
---------------------------------------------

Streamlit page for checking what the detection pipeline sees in the
`species` table: which columns exist, which label each row resolves to,
and which catalog entry a typed name would be matched to.

Dependencies:
- Streamlit
- SQLAlchemy (through db.species_directory)
"""

import traceback

import streamlit as st
from sqlalchemy.exc import SQLAlchemyError

from config.settings import APP_MODE
from core.species_directory import build_species_directory, extract_species_label
from db.species_directory import SpeciesTableSource
from tools.species_lookup import is_exact_match, match_against_directory

if APP_MODE.lower() == "demo":
    st.title("Demo")
    st.error("🔒 Not available in the demo.")
    st.stop()

source = SpeciesTableSource()
if not source.configured:
    st.error("DATABASE_URL is not configured.")
    st.stop()

try:
    with st.spinner("Loading species table..."):
        rows = source.fetch_rows()
except SQLAlchemyError as e:
    first_line = traceback.format_exception_only(type(e), e)[-1].strip()
    st.error(first_line)
    st.stop()

directory = build_species_directory(rows)

col1, col2 = st.columns(2)
col1.metric("Rows", len(rows))
col2.metric("Directory entries", len(directory))

with st.expander("Columns (first row)"):
    st.write(list(rows[0].keys()) if rows else [])

st.markdown("**First resolved names**")
for row in rows[:5]:
    st.markdown(f"- {extract_species_label(row) or '(vide)'}")

# --- Lookup ---
query = st.text_input("Species name", value="Thon rouge")
if query:
    label = match_against_directory(query, directory)
    if label is None:
        st.warning("Aucune espèce trouvée pour ce nom.")
    else:
        how = "exact" if is_exact_match(query, directory) else "fuzzy (substring)"
        st.success(f"{label} — {how} match")

with st.expander("Directory"):
    st.dataframe(
        [{"key": k, "label": v} for k, v in directory.items()],
        use_container_width=True,
    )
