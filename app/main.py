"""
Streamlit Frontend for Contigos

The page both partners open once a month to see who transfers how
much to the joint account.

DESIGN PRINCIPLES:
1. Every figure comes from the allocation engine, never from the UI
2. Input is validated before anything is saved
3. A failed control check is shown, not hidden
4. Amounts are rounded only for display
"""

import asyncio
from datetime import date
from uuid import UUID

import streamlit as st

from contigos.audit import create_correlation_id
from contigos.auth import check_password
from contigos.calculations import (
    calculate_private_totals,
    daily_allowance,
    monthly_savings,
    remaining_after_private,
    savings_rate,
)
from contigos.config import get_settings, validate_all_settings
from contigos.errors import ValidationError
from contigos.formatting import (
    format_currency,
    format_percentage,
    payer_display_name,
)
from contigos.models.budget import Partner, Payer, RecordKind
from contigos.orchestrator import BudgetService, create_app_components
from contigos.services.storage import NotFoundError, StorageError


# Page configuration
st.set_page_config(
    page_title="Contigos",
    page_icon="💶",
    layout="wide",
    initial_sidebar_state="expanded",
)


# Attribution field and its options per record kind
RECORD_FORMS = {
    RecordKind.INCOME: ("quelle", list(Partner), "Einkommen"),
    RecordKind.EXPENSE: ("bezahlt_von", list(Payer), "Ausgaben"),
    RecordKind.PRIVATE_EXPENSE: ("person", list(Partner), "Private Ausgaben"),
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    return create_app_components()


def partner_names() -> tuple[str, str]:
    return get_settings().app.partner_names


def render_login() -> bool:
    """Password gate. Returns True once the session is logged in."""
    if st.session_state.get("logged_in"):
        return True

    st.title("🔒 Contigos")
    password = st.text_input("Passwort", type="password")
    if st.button("Anmelden", type="primary"):
        _, audit_logger = get_components()
        ok = check_password(password)
        run_async(audit_logger.log_login(ok))
        if ok:
            st.session_state.logged_in = True
            st.rerun()
        st.error("Falsches Passwort")
    return False


def main():
    """Main application entry point."""
    if not render_login():
        return

    service, _ = get_components()

    st.sidebar.title("💶 Contigos")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigation:",
        ["📊 Übersicht", "💰 Einkommen", "🧾 Ausgaben", "👤 Private Ausgaben", "⚙️ Einstellungen"],
        index=0,
    )

    today = date.today()
    selected_month = st.sidebar.date_input("Monat", value=today.replace(day=1))

    if page == "📊 Übersicht":
        render_summary_page(service, selected_month)
    elif page == "💰 Einkommen":
        render_records_page(service, RecordKind.INCOME)
    elif page == "🧾 Ausgaben":
        render_records_page(service, RecordKind.EXPENSE)
    elif page == "👤 Private Ausgaben":
        render_records_page(service, RecordKind.PRIVATE_EXPENSE)
    elif page == "⚙️ Einstellungen":
        render_settings_page(service)


def render_summary_page(service: BudgetService, selected_month: date):
    """Transfers, free money, savings and the control check."""
    st.title("📊 Übersicht")
    p1_name, p2_name = partner_names()

    calculation = run_async(service.calculate(create_correlation_id()))
    results = calculation.results
    snapshot = calculation.snapshot

    if results.gesamteinkommen == 0:
        st.info("Noch kein Einkommen erfasst. Lege zuerst Einkommen an.")

    st.markdown("### Überweisungen auf das Gemeinschaftskonto")
    col1, col2 = st.columns(2)
    with col1:
        st.metric(
            f"{p1_name} überweist",
            format_currency(results.finale_ueberweisung_p1),
            help=f"{format_percentage(results.p1_anteil_prozent)} Anteil",
        )
    with col2:
        st.metric(
            f"{p2_name} überweist",
            format_currency(results.finale_ueberweisung_p2),
            help=f"{format_percentage(results.p2_anteil_prozent)} Anteil",
        )

    allowance = daily_allowance(
        snapshot.settings.gemeinschaftskonto_aktuell,
        selected_month.year,
        selected_month.month,
    )
    st.caption(
        f"Verfügbar pro Tag: {format_currency(allowance.per_day)} "
        f"({allowance.remaining_days} Tage verbleibend)"
    )

    st.markdown("### Girokonto - Freie Verfügung")
    free_p1, free_p2 = remaining_after_private(results, snapshot.private_expenses)
    private_p1, private_p2 = calculate_private_totals(snapshot.private_expenses)
    col1, col2 = st.columns(2)
    with col1:
        st.metric(f"Verbleibt {p1_name}", format_currency(results.verbleibt_p1))
        st.caption(
            f"Nach privaten Ausgaben ({format_currency(private_p1)}): "
            f"{format_currency(free_p1)}"
        )
    with col2:
        st.metric(f"Verbleibt {p2_name}", format_currency(results.verbleibt_p2))
        st.caption(
            f"Nach privaten Ausgaben ({format_currency(private_p2)}): "
            f"{format_currency(free_p2)}"
        )

    st.markdown("### Tagesgeldkonto - Sparen")
    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Aktuell", format_currency(results.aktuelles_tagesgeldkonto))
    with col2:
        st.metric("Neu", format_currency(results.neues_tagesgeldkonto))
    with col3:
        st.metric(
            "Sparquote",
            format_percentage(savings_rate(results)),
            help=f"Monatlicher Sparplan: {format_currency(monthly_savings(results))}",
        )

    st.markdown("### Kontrolle")
    if calculation.inconsistency is None:
        st.success(
            f"✅ Benötigte Einzahlung {format_currency(results.kontrolle_einzahlung_noetig)} "
            f"= Summe Überweisungen {format_currency(results.kontrolle_summe_ueberweisungen)}"
        )
    else:
        st.error(f"❌ {calculation.inconsistency.message}")

    with st.expander("Detaillierte Berechnung"):
        rows = [
            ("Gesamteinkommen", results.gesamteinkommen),
            ("Gesamtkosten", results.gesamtkosten),
            ("Lebensmittel (Comida)", snapshot.settings.comida_betrag),
            ("Sparen (Ahorros)", snapshot.settings.ahorros_betrag),
            ("Ausgaben über Gemeinschaftskonto", results.gk_dyn_ausgaben),
            ("Bedarf Gemeinschaftskonto", results.bedarf_gk),
            ("Restgeld Vormonat", snapshot.settings.restgeld_vormonat),
            (f"Anteil Kosten {p1_name}", results.p1_gesamtanteil_kosten),
            (f"Anteil Kosten {p2_name}", results.p2_gesamtanteil_kosten),
            (f"Direktzahlungen {p1_name}", results.p1_direktzahlungen),
            (f"Direktzahlungen {p2_name}", results.p2_direktzahlungen),
            (f"Anteil Restgeld {p1_name}", results.p1_anteil_restgeld),
            (f"Anteil Restgeld {p2_name}", results.p2_anteil_restgeld),
        ]
        for label, amount in rows:
            st.markdown(f"- **{label}:** {format_currency(amount)}")


def render_records_page(service: BudgetService, kind: RecordKind):
    """List, add, edit and delete records of one kind."""
    attribution, options, title = RECORD_FORMS[kind]
    names = partner_names()
    st.title(title)

    with st.form(f"add_{kind.value}", clear_on_submit=True):
        col1, col2, col3 = st.columns([3, 2, 2])
        with col1:
            beschreibung = st.text_input("Beschreibung", max_chars=100)
        with col2:
            betrag = st.text_input("Betrag (€)")
        with col3:
            owner = st.selectbox(
                "Zugeordnet",
                options=options,
                format_func=lambda x: payer_display_name(x, names),
            )
        if st.form_submit_button("➕ Hinzufügen", type="primary"):
            try:
                run_async(service.create_record(
                    kind,
                    {"beschreibung": beschreibung, "betrag": betrag, attribution: owner},
                    create_correlation_id(),
                ))
                st.success("Gespeichert")
            except ValidationError as e:
                st.error(e.message)
            except StorageError as e:
                st.error(f"Speichern fehlgeschlagen: {e}")

    st.markdown("---")
    records = run_async(service.list_records(kind))
    if not records:
        st.info("Noch keine Einträge.")
        return

    total = sum(record.betrag for record in records)
    st.markdown(f"**Gesamt:** {format_currency(total)}")

    for record in records:
        owner = getattr(record, attribution)
        with st.expander(
            f"{record.beschreibung} - {format_currency(record.betrag)} "
            f"({payer_display_name(owner, names)})"
        ):
            render_record_editor(service, kind, record.id, record, options)


def render_record_editor(service: BudgetService, kind: RecordKind, record_id: UUID, record, options):
    attribution, _, _ = RECORD_FORMS[kind]
    names = partner_names()

    with st.form(f"edit_{record_id}"):
        beschreibung = st.text_input("Beschreibung", value=record.beschreibung, max_chars=100)
        betrag = st.text_input("Betrag (€)", value=f"{record.betrag:.2f}")
        owner = st.selectbox(
            "Zugeordnet",
            options=options,
            index=options.index(getattr(record, attribution)),
            format_func=lambda x: payer_display_name(x, names),
        )
        col1, col2 = st.columns(2)
        with col1:
            save = st.form_submit_button("💾 Speichern")
        with col2:
            delete = st.form_submit_button("🗑️ Löschen")

    try:
        if save:
            run_async(service.update_record(
                kind,
                record_id,
                {"beschreibung": beschreibung, "betrag": betrag, attribution: owner},
                create_correlation_id(),
            ))
            st.rerun()
        if delete:
            run_async(service.delete_record(kind, record_id, create_correlation_id()))
            st.rerun()
    except ValidationError as e:
        st.error(e.message)
    except NotFoundError:
        st.warning("Eintrag nicht gefunden - wurde er bereits gelöscht?")
    except StorageError as e:
        st.error(f"Speichern fehlgeschlagen: {e}")


def render_settings_page(service: BudgetService):
    """Settings form and connection status."""
    st.title("⚙️ Einstellungen")

    current = run_async(service.load_snapshot()).settings

    with st.form("settings"):
        col1, col2 = st.columns(2)
        with col1:
            restgeld = st.number_input(
                "Restgeld Vormonat (€)", value=float(current.restgeld_vormonat), step=10.0
            )
            comida = st.number_input(
                "Lebensmittel / Comida (€)", value=float(current.comida_betrag), min_value=0.0, step=10.0
            )
            ahorros = st.number_input(
                "Sparen / Ahorros (€)", value=float(current.ahorros_betrag), min_value=0.0, step=10.0
            )
        with col2:
            tagesgeld = st.number_input(
                "Tagesgeldkonto aktuell (€)", value=float(current.tagesgeldkonto_betrag), step=10.0
            )
            girokonto = st.number_input(
                "Gemeinschaftskonto aktuell (€)",
                value=float(current.gemeinschaftskonto_aktuell),
                step=10.0,
            )
        if st.form_submit_button("💾 Speichern", type="primary"):
            try:
                run_async(service.update_settings(
                    {
                        "restgeld_vormonat": restgeld,
                        "comida_betrag": comida,
                        "ahorros_betrag": ahorros,
                        "tagesgeldkonto_betrag": tagesgeld,
                        "gemeinschaftskonto_aktuell": girokonto,
                    },
                    create_correlation_id(),
                ))
                st.success("Einstellungen gespeichert")
            except ValidationError as e:
                st.error(e.message)
            except StorageError as e:
                st.error(f"Speichern fehlgeschlagen: {e}")

    st.markdown("---")
    st.markdown("### Verbindungsstatus")

    status = validate_all_settings()
    if get_settings().app.storage_backend == "memory":
        st.info("Speicher: im Arbeitsspeicher (Daten gehen beim Neustart verloren)")
    elif status.get("google_sheets", False):
        st.success("✅ Google Sheets - Verbunden")
    else:
        error = status.get("google_sheets_error", "Nicht konfiguriert")
        st.error(f"❌ Google Sheets - {error}")


if __name__ == "__main__":
    main()
