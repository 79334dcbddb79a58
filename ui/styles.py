from __future__ import annotations

import streamlit as st

APP_CSS = r"""
@import url('https://fonts.googleapis.com/css2?family=Source+Serif+4:wght@400;600&family=Inter:wght@400;500;600&display=swap');

html, body, [class*="st-"] {
  font-family: "Inter", ui-sans-serif, system-ui, -apple-system,
    "Segoe UI", sans-serif;
}

h1, h2, h3 {
  font-family: "Source Serif 4", Georgia, serif;
  letter-spacing: -0.01em;
}

/* Paper-coloured page */
[data-testid="stAppViewContainer"] {
  background: linear-gradient(180deg, #fbf8f1 0%, #f4efe3 100%);
}

[data-testid="stAppViewContainer"] > .main {
  padding-top: 1rem;
}

.tw-header {
  padding: 0.25rem 0 0.75rem 0;
  border-bottom: 1px solid rgba(60, 45, 20, 0.15);
  margin-bottom: 0.75rem;
}

.tw-title {
  font-family: "Source Serif 4", Georgia, serif;
  font-size: 2rem;
  font-weight: 600;
  color: #2b2418;
}

.tw-subtitle {
  color: rgba(43, 36, 24, 0.7);
  font-size: 0.95rem;
}

/* One card per workbench panel */
.tw-panel-note {
  color: rgba(43, 36, 24, 0.65);
  font-size: 0.85rem;
  margin: -0.35rem 0 0.5rem 0;
}

[data-testid="stPlotlyChart"] {
  border: 1px solid rgba(60, 45, 20, 0.18);
  border-radius: 6px;
  background: #ffffff;
}

/* Compact button rows under each panel */
div.stButton > button {
  border-radius: 4px;
  padding: 0.2rem 0.6rem;
  font-size: 0.85rem;
}
"""


def inject_global_styles() -> None:
    st.markdown(f"<style>{APP_CSS}</style>", unsafe_allow_html=True)
