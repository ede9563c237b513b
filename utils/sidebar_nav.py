"""
Icon rail sidebar for the console.

Pages are grouped (bookings, money, setup). The rail shows icons only and
opens to full labels on hover. Clicks are parked in session state and the
next run calls st.switch_page, since a button callback can't switch pages.
"""
import streamlit as st

SIDEBAR_BG = "#1F4E5F"
RAIL_WIDTH = 72
OPEN_WIDTH = 240

# Outline SVG paths (24x24 viewBox)
ICONS_SVG = {
    "compass": '<circle cx="12" cy="12" r="10"/><polygon points="16.24 7.76 14.12 14.12 7.76 16.24 9.88 9.88 16.24 7.76"/>',
    "home": '<path d="M3 9l9-7 9 7v11a2 2 0 0 1-2 2H5a2 2 0 0 1-2-2z"/><polyline points="9 22 9 12 15 12 15 22"/>',
    "calendar": '<rect x="3" y="4" width="18" height="18" rx="2" ry="2"/><line x1="16" y1="2" x2="16" y2="6"/><line x1="8" y1="2" x2="8" y2="6"/><line x1="3" y1="10" x2="21" y2="10"/>',
    "file-text": '<path d="M14 2H6a2 2 0 0 0-2 2v16a2 2 0 0 0 2 2h12a2 2 0 0 0 2-2V8z"/><polyline points="14 2 14 8 20 8"/><line x1="16" y1="13" x2="8" y2="13"/><line x1="16" y1="17" x2="8" y2="17"/>',
    "credit-card": '<rect x="1" y="4" width="22" height="16" rx="2" ry="2"/><line x1="1" y1="10" x2="23" y2="10"/>',
    "percent": '<line x1="19" y1="5" x2="5" y2="19"/><circle cx="6.5" cy="6.5" r="2.5"/><circle cx="17.5" cy="17.5" r="2.5"/>',
    "trending-up": '<polyline points="23 6 13.5 15.5 8.5 10.5 1 18"/><polyline points="17 6 23 6 23 12"/>',
    "tag": '<path d="M20.59 13.41l-7.17 7.17a2 2 0 0 1-2.83 0L2 12V2h10l8.59 8.59a2 2 0 0 1 0 2.82z"/><line x1="7" y1="7" x2="7.01" y2="7"/>',
    "upload": '<path d="M21 15v4a2 2 0 0 1-2 2H5a2 2 0 0 1-2-2v-4"/><polyline points="17 8 12 3 7 8"/><line x1="12" y1="3" x2="12" y2="15"/>',
}

# (section, [(icon key, label, page path)])
NAV_SECTIONS = [
    ("Bookings", [
        ("home", "Dashboard", "pages/1_Dashboard.py"),
        ("calendar", "Calendar", "pages/2_Calendar.py"),
    ]),
    ("Money", [
        ("file-text", "Invoices", "pages/3_Invoices.py"),
        ("credit-card", "Accounts Payable", "pages/4_Accounts_Payable.py"),
        ("percent", "Commissions", "pages/5_Commissions.py"),
        ("trending-up", "Profit & Loss", "pages/6_Profit_Loss.py"),
    ]),
    ("Setup", [
        ("tag", "Rates", "pages/7_Rates.py"),
        ("upload", "Import", "pages/8_Import.py"),
    ]),
]


def svg_icon(name: str, size: int = 22) -> str:
    path = ICONS_SVG.get(name, ICONS_SVG["compass"])
    return (f'<svg xmlns="http://www.w3.org/2000/svg" width="{size}" height="{size}" viewBox="0 0 24 24" '
            f'fill="none" stroke="currentColor" stroke-width="1.8" stroke-linecap="round" '
            f'stroke-linejoin="round">{path}</svg>')


def get_sidebar_css():
    """Rail CSS. Section titles and button labels only show while open."""
    rail = 'section[data-testid="stSidebar"]'
    closed = f'{rail}:not(:hover):not(:focus-within)'
    return f"""
<style>
    {rail} {{
        --nav-fg: rgba(255,255,255,0.86);
        --nav-hover: rgba(255,255,255,0.12);
        background: {SIDEBAR_BG} !important;
        width: {RAIL_WIDTH}px !important;
        min-width: {RAIL_WIDTH}px !important;
        overflow-x: hidden !important;
        transition: min-width .2s ease .3s, width .2s ease .3s;
    }}
    {rail}:hover, {rail}:focus-within {{
        width: {OPEN_WIDTH}px !important;
        min-width: {OPEN_WIDTH}px !important;
        transition-delay: 0s;
    }}
    {rail} [data-testid="stSidebarNav"] {{ display: none !important; }}
    {rail} [data-testid="stSidebarContent"] {{ padding: 0 10px !important; }}
    {rail} [data-testid="column"] {{ padding: 0 !important; }}
    {rail} .nav-section {{
        color: var(--nav-fg);
        opacity: .55;
        font-size: .7rem;
        letter-spacing: .08em;
        text-transform: uppercase;
        margin: 14px 0 2px 4px;
        white-space: nowrap;
    }}
    {rail} .nav-icon {{
        color: var(--nav-fg);
        display: grid;
        place-items: center;
        height: 42px;
    }}
    {rail} .stButton > button {{
        color: var(--nav-fg) !important;
        background: none !important;
        border: 0 !important;
        border-radius: 6px !important;
        min-height: 42px !important;
        padding: 8px !important;
        justify-content: flex-start !important;
        font-size: .9rem !important;
        white-space: nowrap !important;
    }}
    {rail} .stButton > button:hover {{ background: var(--nav-hover) !important; }}
    {closed} .nav-section {{ visibility: hidden; }}
    {closed} .stButton > button {{ color: transparent !important; pointer-events: none; }}
</style>
"""


NAV_TARGET_KEY = "nav_target"


def _go(path: str) -> None:
    st.session_state[NAV_TARGET_KEY] = path


def inject_sidebar_collapsed():
    """Switch to a page picked on the last run, else draw the rail."""
    target = st.session_state.pop(NAV_TARGET_KEY, None)
    if target:
        st.switch_page(target)
        return

    st.markdown(get_sidebar_css(), unsafe_allow_html=True)

    with st.sidebar:
        for section, pages in NAV_SECTIONS:
            st.markdown(f'<div class="nav-section">{section}</div>', unsafe_allow_html=True)
            for icon_key, label, path in pages:
                icon_col, label_col = st.columns([1, 3], gap="small")
                with icon_col:
                    st.markdown(f'<div class="nav-icon">{svg_icon(icon_key)}</div>', unsafe_allow_html=True)
                with label_col:
                    st.button(label, key=f"nav_{path}", use_container_width=True,
                              on_click=_go, args=(path,))
