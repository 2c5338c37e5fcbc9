"""
Level Up Dashboard - Streamlit Client
Standings, team/player drill-down and point allocation against the scoring service
"""

import asyncio
import uuid
from datetime import datetime, timedelta

import streamlit as st
import pandas as pd
import plotly.express as px
import extra_streamlit_components as stx

import config
from database import SessionStore
from logger import get_logger
from services import AllocationForm, ScoringGateway, ScoringService, SessionHolder, summarize_points
from services.allocation import AllocationState
from services.errors import GatewayError
from services.session import allocation_access_message

log = get_logger("app")


def run_async(coro):
    """Drive one async service call from a Streamlit rerun"""
    return asyncio.run(coro)


def points_html(points, prefix=""):
    summary = summarize_points([{"points": points}])
    color = "#d62728" if summary.is_negative else "#2ca02c"
    return f'<span class="{summary.css_class}" style="color: {color}; font-weight: 600;">{prefix}{summary.total}</span>'


@st.cache_resource
def get_scoring_service():
    """Read-only scoring service shared across sessions"""
    return ScoringService(ScoringGateway(config.API_URL))


def get_client_key():
    """Random per-browser id kept in a cookie; scopes the stored session"""
    if "client_key" not in st.session_state:
        client_key = st.context.cookies.get(config.CLIENT_COOKIE)
        st.session_state.client_key = client_key or uuid.uuid4().hex
        st.session_state.client_cookie_pending = not client_key

    if st.session_state.client_cookie_pending:
        cookie_manager = stx.CookieManager(key="levelup_cookies")
        cookie_manager.set(
            config.CLIENT_COOKIE,
            st.session_state.client_key,
            expires_at=datetime.now() + timedelta(days=config.CLIENT_COOKIE_DAYS),
            key="set_client_cookie",
        )
        st.session_state.client_cookie_pending = False

    return st.session_state.client_key


def get_session():
    """Per-browser session holder, restored from this browser's record on first use"""
    if "session" not in st.session_state:
        store = SessionStore(config.SESSION_DB_FILE, client_key=get_client_key())
        holder = SessionHolder(store)
        holder.authenticator = ScoringGateway(config.API_URL, session=holder)
        holder.restore()
        st.session_state.session = holder
    return st.session_state.session


@st.cache_data(ttl=30)
def load_team_leaderboard():
    """Load dashboard standings"""
    return run_async(get_scoring_service().get_team_leaderboard())


@st.cache_data(ttl=30)
def load_team_list():
    """Load team listing for the explorer"""
    return run_async(get_scoring_service().get_team_list())


@st.cache_data(ttl=30)
def load_team_details(team_id):
    """Load team detail with derived totals"""
    return run_async(get_scoring_service().get_team_details(team_id))


@st.cache_data(ttl=30)
def load_player_breakdown(player_id):
    """Load player breakdown with derived total"""
    return run_async(get_scoring_service().get_player_breakdown(player_id))


@st.cache_data(ttl=30)
def load_activity_totals(player_id):
    """Load a player's points grouped by activity"""
    return run_async(get_scoring_service().get_activity_totals(player_id))


def clear_cache():
    """Clear all cached data"""
    st.cache_data.clear()


def main():
    st.set_page_config(
        page_title=f"{config.APP_TITLE} Dashboard",
        page_icon="🏆",
        layout="wide",
        initial_sidebar_state="expanded"
    )

    session = get_session()

    # Header
    st.markdown(f"""
    <div style="text-align: center; margin-bottom: 30px;">
        <div style="font-weight: 600;">Saral Mandal</div>
        <div style="font-weight: 600;">Akshar Sena</div>
        <h1>🏆 {config.APP_TITLE}</h1>
        <p style="color: #666;">{config.APP_SUBTITLE}</p>
    </div>
    """, unsafe_allow_html=True)

    # Sidebar
    with st.sidebar:
        show_auth_section(session)

        st.markdown("### Quick Actions")
        if st.button("🔄 Refresh Data"):
            clear_cache()
            st.rerun()

    show_main_interface(session)


def show_auth_section(session):
    """Login form or logout button"""
    st.markdown("### Operator")

    if session.is_authenticated:
        st.success(f"✅ Logged in as {session.username}")
        if st.button(f"Logout ({session.username})"):
            session.logout()
            _drop_allocation_form()
            st.rerun()
        return

    with st.form("login_form"):
        username = st.text_input("Username", autocomplete="username")
        password = st.text_input("Password", type="password", autocomplete="current-password")

        if st.form_submit_button("Login", type="primary"):
            ok, message = run_async(session.login(username.strip(), password))
            if ok:
                st.session_state.pop("login_error", None)
                st.rerun()
            else:
                st.session_state.login_error = message

    if st.session_state.get("login_error"):
        st.error(st.session_state.login_error)


def show_main_interface(session):
    """Show main dashboard interface"""
    labels = ["🏆 Dashboard", "👥 Team Details"]
    if session.can_allocate:
        labels.append("⚙️ Allocate Points (CRUD)")

    tabs = st.tabs(labels)

    with tabs[0]:
        show_dashboard()

    with tabs[1]:
        show_team_explorer()

    if session.can_allocate:
        with tabs[2]:
            show_allocation_form(session)


def show_dashboard():
    """Display team standings"""
    st.subheader("🏆 Dashboard")

    try:
        leaderboard_df = load_team_leaderboard()
    except GatewayError as e:
        log.warning(f"Dashboard unavailable: {e}")
        st.warning("Could not load standings right now. Use Refresh Data to try again.")
        return

    if len(leaderboard_df) == 0:
        st.warning("No team data available")
        return

    show_team_cards(leaderboard_df, key_prefix="dash")

    chart_df = leaderboard_df.copy()
    chart_df["sign"] = chart_df["is_negative"].map({True: "Negative", False: "Positive"})
    fig = px.bar(
        chart_df,
        x="name",
        y="total_points",
        color="sign",
        color_discrete_map={"Positive": "#2ca02c", "Negative": "#d62728"},
        labels={"name": "Team", "total_points": "Points", "sign": ""},
        title="Team Points",
    )
    fig.update_layout(showlegend=False)
    st.plotly_chart(fig, use_container_width=True)

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Total Teams", len(leaderboard_df))
    with col2:
        st.metric("Top Score", f"{leaderboard_df['total_points'].max():.0f}")
    with col3:
        st.metric("Avg Points", f"{leaderboard_df['total_points'].mean():.1f}")


def show_team_cards(teams_df: pd.DataFrame, key_prefix: str, selectable: bool = False):
    """Render teams as a grid of cards"""
    columns = st.columns(4)
    for i, (_, team) in enumerate(teams_df.iterrows()):
        with columns[i % 4]:
            st.image(team["logo_url"] or config.PLACEHOLDER_LOGO, width=60)
            st.markdown(f"**{team['name']}**")
            st.markdown(points_html(team["total_points"], prefix="Points: "), unsafe_allow_html=True)
            if selectable and st.button("View team", key=f"{key_prefix}_team_{team['id']}"):
                st.session_state.selected_team = team["id"]
                st.session_state.selected_player = None
                st.rerun()


def show_team_explorer():
    """Team list -> team detail -> player breakdown"""
    selected_team = st.session_state.get("selected_team")
    selected_player = st.session_state.get("selected_player")

    if selected_team is None:
        st.subheader("👥 Teams")
        try:
            teams_df = load_team_list()
        except GatewayError as e:
            log.warning(f"Team list unavailable: {e}")
            st.warning("Could not load teams right now.")
            return

        if len(teams_df) == 0:
            st.warning("No team data available")
            return

        show_team_cards(teams_df, key_prefix="explorer", selectable=True)
        return

    if selected_player is not None:
        show_player_details(selected_player)
        return

    show_team_detail(selected_team)


def show_team_detail(team_id):
    if st.button("← Back to Teams"):
        st.session_state.selected_team = None
        st.rerun()

    try:
        details = load_team_details(team_id)
    except GatewayError as e:
        log.warning(f"Team {team_id} unavailable: {e}")
        st.warning("Could not load this team right now.")
        return

    team = details["team"]
    col1, col2 = st.columns([1, 3])
    with col1:
        st.image(team.logo_url or config.PLACEHOLDER_LOGO, width=80)
    with col2:
        st.markdown(f"### {team.name}")
        st.write(f"Coach: {team.coach}")
        st.write(f"Mentor: {team.mentor}")
        st.markdown(points_html(details["total"].total, prefix="Team Points: "), unsafe_allow_html=True)

    if details["errors"]:
        st.info(f"Points unavailable for: {', '.join(details['errors'])}")

    st.markdown("#### Players")
    members_df = details["members"]
    if len(members_df) == 0:
        st.info("No players on this team yet")
        return

    for _, member in members_df.iterrows():
        col1, col2 = st.columns([3, 1])
        with col1:
            if st.button(member["name"], key=f"player_{member['id']}"):
                st.session_state.selected_player = member["id"]
                st.rerun()
        with col2:
            st.markdown(points_html(member["total_points"]), unsafe_allow_html=True)


def show_player_details(player_id):
    if st.button("← Back to Team"):
        st.session_state.selected_player = None
        st.rerun()

    st.markdown("#### Player activity breakdown")
    try:
        details = load_player_breakdown(player_id)
    except GatewayError as e:
        log.warning(f"Breakdown for player {player_id} unavailable: {e}")
        st.warning("Could not load this player's points right now.")
        return

    breakdown_df = details["breakdown"]
    if len(breakdown_df) == 0:
        st.info("No points recorded yet")
    else:
        display_df = breakdown_df.rename(columns={"activity": "Activity", "points": "Points"})
        st.dataframe(display_df, use_container_width=True, hide_index=True)

    st.markdown(points_html(details["summary"].total, prefix="Total Points: "), unsafe_allow_html=True)

    if len(breakdown_df) > 0:
        try:
            activity_df = load_activity_totals(player_id)
        except GatewayError as e:
            log.warning(f"Activity totals for player {player_id} unavailable: {e}")
            return

        fig = px.bar(
            activity_df,
            x="activity",
            y="points",
            labels={"activity": "Activity", "points": "Points"},
            title="Points by Activity",
        )
        st.plotly_chart(fig, use_container_width=True)


# ================== POINT ALLOCATION ==================

def get_allocation_form(session):
    """Form view-model, created per mount with its reference data loaded"""
    form = st.session_state.get("allocation_form")
    if form is None:
        gateway = ScoringGateway(config.API_URL, session=session)
        form = AllocationForm(gateway, on_unauthorized=lambda reason: _on_unauthorized(session, reason))
        run_async(form.load_reference_data())
        st.session_state.allocation_form = form
        st.session_state.alloc_points = 0
    return form


def _drop_allocation_form():
    for key in ("allocation_form", "alloc_team", "alloc_player", "alloc_activity", "alloc_points"):
        st.session_state.pop(key, None)


def _on_unauthorized(session, reason):
    session.invalidate(reason)
    _drop_allocation_form()
    st.session_state.login_error = "Your session has expired. Please log in again."


def _on_team_change():
    form = st.session_state.allocation_form
    run_async(form.select_team(st.session_state.alloc_team))
    st.session_state.alloc_player = None


def _on_player_change():
    st.session_state.allocation_form.select_player(st.session_state.alloc_player)


def _on_activity_change():
    st.session_state.allocation_form.select_activity(st.session_state.alloc_activity)


def _on_points_change():
    form = st.session_state.allocation_form
    if not form.set_points(st.session_state.alloc_points):
        st.session_state.alloc_points = form.draft.points


def _on_points_step(step):
    form = st.session_state.allocation_form
    if step > 0:
        form.increment()
    else:
        form.decrement()
    st.session_state.alloc_points = form.draft.points


def _on_submit():
    run_async(st.session_state.allocation_form.submit())
    clear_cache()


def show_allocation_form(session):
    """Allocate points to a player for an activity"""
    st.subheader("⚙️ Allocate Points (CRUD)")

    denied = allocation_access_message(session)
    if denied:
        st.info(denied)
        return

    form = get_allocation_form(session)

    if form.load_error:
        st.warning(form.load_error)
        if st.button("Retry loading"):
            run_async(form.load_reference_data())
            st.rerun()

    team_names = {t.id: t.name for t in form.teams}
    player_names = {p.id: p.name for p in form.players}
    activity_names = {a.id: a.name for a in form.activities}

    st.selectbox(
        "Select Team:",
        [None] + list(team_names),
        format_func=lambda tid: "Select" if tid is None else team_names[tid],
        key="alloc_team",
        on_change=_on_team_change,
    )
    st.selectbox(
        "Select Player:",
        [None] + list(player_names),
        format_func=lambda pid: "Select" if pid is None else player_names.get(pid, pid),
        key="alloc_player",
        on_change=_on_player_change,
        disabled=not form.player_selectable,
    )
    if form.roster_error:
        st.warning(form.roster_error)

    st.selectbox(
        "Select Activity:",
        [None] + list(activity_names),
        format_func=lambda aid: "Select" if aid is None else activity_names[aid],
        key="alloc_activity",
        on_change=_on_activity_change,
    )

    st.markdown("Points:")
    col1, col2, col3 = st.columns([1, 3, 1])
    with col1:
        st.button("−", key="alloc_minus", on_click=_on_points_step, args=(-1,))
    with col2:
        st.number_input("Points", step=1, key="alloc_points", on_change=_on_points_change,
                        label_visibility="collapsed")
    with col3:
        st.button("+", key="alloc_plus", on_click=_on_points_step, args=(1,))

    st.button(
        "Allocate",
        type="primary",
        on_click=_on_submit,
        disabled=form.state is AllocationState.SUBMITTING,
    )

    if form.message:
        if form.state is AllocationState.SUBMITTED:
            st.success(form.message)
        elif form.state is AllocationState.FAILED:
            st.error(form.message)
        else:
            st.info(form.message)


if __name__ == "__main__":
    main()
