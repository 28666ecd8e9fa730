"""Letter builders — one per template type, dispatched through a single table.

Builders are pure: the only date they stamp is the injected `today`, and
missing data never raises (it renders as a bracketed placeholder). Each builder
returns the subject, the body text and an optional attachment hint; build_letter()
wraps that into a Letter with placeholder names and a download filename.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Callable
from datetime import date
from typing import NamedTuple

from src.calculators.incasso import max_collection_costs
from src.config import settings
from src.letters.fields import FieldResolver, format_euro
from src.models.enums import DisputeReason, IncassoReason, ResolutionKind, TemplateType
from src.schemas.affordability import AffordabilityBreakdown
from src.schemas.letters import (
    AlreadyPaidPayload,
    CreditorInfo,
    DebtorInfo,
    DisputePayload,
    IncassokostenPayload,
    Letter,
    LoweringAmountPayload,
    PartialRecognitionPayload,
    PaymentHolidayPayload,
    ProposalPayload,
    StopDebtCounselingPayload,
    StrategyPayload,
    VerjaringPayload,
)

logger = logging.getLogger(__name__)

CLOSING = "Met vriendelijke groet,"


class _Draft(NamedTuple):
    subject: str
    text: str
    attachment_hint: str | None = None


class _Context(NamedTuple):
    debtor: DebtorInfo
    creditor: CreditorInfo
    today: date
    breakdown: AffordabilityBreakdown | None
    f: FieldResolver


# ── Shared fragments ─────────────────────────────────────────────────


def _signature(ctx: _Context) -> str:
    return ctx.f.text("debtor_name", ctx.debtor.full_name, label="uw naam")


def _case(ctx: _Context) -> str:
    return ctx.f.text("case_number", ctx.creditor.case_number, label="dossiernummer invullen")


def _claim(ctx: _Context) -> str:
    return ctx.f.amount("debt_amount", ctx.creditor.amount, label="openstaand bedrag")


def _received(ctx: _Context, received: date | None) -> str:
    fallback = ctx.today if settings.letters.default_received_today else None
    return ctx.f.date("received_letter_date", received, fallback, label="datum ontvangen brief")


def _address_blocks(ctx: _Context) -> str:
    """Sender block, recipient block and place/date line of the formal letters."""
    f, debtor, creditor = ctx.f, ctx.debtor, ctx.creditor
    city = f.text("debtor_city", debtor.city, label="woonplaats")
    sender = "\n".join([
        _signature(ctx),
        f.text("debtor_address", debtor.address, label="adres"),
        f"{f.text('debtor_postcode', debtor.postcode, label='postcode')} {city}",
        f.text("debtor_email", debtor.email, label="e-mail"),
    ])
    recipient = "\n".join([
        "Aan",
        f.text("creditor_name", creditor.name, label="naam incassobureau/bedrijf"),
        f.text("creditor_department", creditor.department, label="afdeling"),
        f.text("creditor_address", creditor.address, label="adres"),
        f"{f.text('creditor_postcode', creditor.postcode, label='postcode')} "
        f"{f.text('creditor_city', creditor.city, label='plaats')}",
    ])
    return f"{sender}\n\n{recipient}\n\n{city}, {f.date('today', ctx.today)}"


def _greeting(creditor: CreditorInfo) -> str:
    if creditor.contact_person and creditor.contact_person.strip():
        return f"Geachte heer, mevrouw {creditor.contact_person.strip()},"
    return "Geachte heer, mevrouw,"


def _no_reply_close(days: int) -> str:
    return (
        f"Krijg ik binnen {days} dagen geen reactie? Dan ga ik ervan uit dat u het dossier sluit "
        "en mij geen brieven meer stuurt."
    )


# ── Proposal ─────────────────────────────────────────────────────────


def _proposal(ctx: _Context, payload: ProposalPayload) -> _Draft:
    if payload.style == "juridisch_loket":
        return _proposal_formal(ctx, payload)

    f, plan = ctx.f, payload.plan
    case = _case(ctx)
    name = _signature(ctx)

    if plan is not None and plan.kind == ResolutionKind.PAY_IN_FULL:
        text = (
            f"Geachte heer/mevrouw,\n\n"
            f"Betreft: Volledige betaling openstaande vordering - Dossier {case}\n\n"
            f"Hierbij laat ik u weten dat ik de openstaande schuld van {_claim(ctx)} in één keer wil voldoen.\n\n"
            "Ik verzoek u mij de betalingsgegevens (IBAN, tenaamstelling en betalingskenmerk) te sturen, "
            "zodat ik het bedrag zo spoedig mogelijk kan overmaken.\n\n"
            "Na ontvangst van de betaling ontvang ik graag een schriftelijke bevestiging dat de schuld "
            "volledig is voldaan en het dossier is gesloten. Ik ga ervan uit dat er daarna geen verdere "
            "kosten in rekening worden gebracht.\n\n"
            f"In afwachting van uw reactie.\n\n{CLOSING}\n{name}"
        )
        return _Draft(f"Volledige betaling openstaande vordering - Dossier {case}", text)

    b = ctx.breakdown
    creditor = f.text("creditor_name", ctx.creditor.name, label="naam schuldeiser")
    intro = (
        f"Geachte {creditor},\n\n"
        f"Betreft: Dossier {case}\n\n"
        f"Ik heb uw correspondentie ontvangen over de openstaande schuld van {_claim(ctx)}. "
        "Ik erken deze schuld en wil graag tot een oplossing komen."
    )
    situation = (
        "Mijn financiële situatie is momenteel als volgt:\n"
        f"• Vast maandelijks inkomen: {f.amount('fixed_monthly_income', b and b.fixed_monthly_income)}\n"
        f"• Vaste maandelijkse lasten: {f.amount('fixed_monthly_costs', b and b.fixed_monthly_costs)}\n"
        f"• Beschikbaar voor levensonderhoud: {f.amount('disposable_income', b and b.disposable_income)}"
    )
    ending = (
        "Zodra mijn financiële situatie verbetert, neem ik direct contact met u op om de maandelijkse "
        "aflossing te verhogen.\n\n"
        f"Ik hoop op uw begrip en zie uw reactie graag tegemoet.\n\n{CLOSING}\n{name}"
    )

    if plan is None or plan.kind == ResolutionKind.INSTALLMENT:
        available = f.amount("available_for_new_arrangement", plan and plan.available_for_new_arrangement)
        offer = (
            f"Volgens de VTLB-methode heb ik {available} per maand beschikbaar voor nieuwe "
            "betalingsregelingen.\n\n"
            f"Ik stel daarom voor om maandelijks "
            f"{f.amount('proposed_monthly_amount', plan and plan.proposed_monthly_amount)} af te lossen, "
            f"gedurende circa {f.text('duration_months', plan and plan.duration_months)} maanden."
        )
        return _Draft(f"Betalingsregeling - Dossier {case}", f"{intro}\n\n{situation}\n\n{offer}\n\n{ending}")

    pause = (
        "Mijn volledige afloscapaciteit wordt op dit moment al benut voor andere, lopende regelingen. "
        "Er is geen financiële ruimte voor een nieuwe betalingsregeling.\n\n"
        "Ik ben in gesprek met schuldhulpverlening om mijn situatie te stabiliseren. Ik verzoek u "
        "daarom de invordering te pauzeren en geen extra kosten in rekening te brengen."
    )
    return _Draft(f"Verzoek pauzering invordering - Dossier {case}", f"{intro}\n\n{situation}\n\n{pause}\n\n{ending}")


def _proposal_formal(ctx: _Context, payload: ProposalPayload) -> _Draft:
    f, creditor = ctx.f, ctx.creditor
    creditor_name = f.text("creditor_name", creditor.name, label="naam schuldeiser")
    monthly = payload.monthly_amount
    if monthly is None and payload.plan is not None:
        monthly = payload.plan.proposed_monthly_amount

    months: int | None = None
    if monthly and monthly > 0 and creditor.amount is not None:
        months = math.ceil(creditor.amount / monthly)

    first_payment = ""
    if payload.include_first_payment:
        if payload.first_payment_date is not None:
            when = f.date("first_payment_date", payload.first_payment_date)
            if payload.first_payment_amount:
                first_payment = (
                    f" Op {when} zal ik de eerste termijn van {format_euro(payload.first_payment_amount)} overmaken."
                )
            else:
                first_payment = f" Op {when} zal ik de eerste termijn overmaken."
        elif payload.first_payment_amount:
            first_payment = f" Ik heb de eerste termijn van {format_euro(payload.first_payment_amount)} al overgemaakt."

    term = settings.letters.response_term_days
    text = (
        f"{_address_blocks(ctx)}\n"
        "Onderwerp: betalingsregeling\n"
        f"Kenmerk: {_case(ctx)}\n\n\n"
        "Geachte heer, mevrouw,\n\n"
        f"Op {_received(ctx, payload.received_letter_date)} ontving ik van u een brief waarin u namens "
        f"{creditor_name} een bedrag van {_claim(ctx)} van mij vordert. Ik weet dat ik dit bedrag aan "
        f"{creditor_name} verschuldigd ben, maar gelet op mijn inkomsten en uitgaven kan ik dit bedrag "
        "niet in één keer betalen.\n\n"
        "Ik verzoek u een betalingsregeling met mij te treffen, zodat ik de vordering in termijnen kan "
        f"aflossen. Ik wil de vordering graag voldoen in {f.text('number_of_months', months, label='aantal maanden')} "
        f"gelijke termijnen van {f.amount('monthly_amount', monthly)}.{first_payment}\n\n"
        f"Graag hoor ik binnen {term} dagen na dagtekening van deze brief of u akkoord gaat met mijn "
        "betalingsvoorstel. Ik vraag u verder om tijdens deze correspondentie verdere incassomaatregelen "
        "op te schorten, om onnodige extra kosten te voorkomen.\n\n"
        "Ik wacht uw spoedige reactie af.\n\n"
        f"{CLOSING}\n\n\n{_signature(ctx)}\n\n"
        "Bijlage: kopie invorderingsbrief"
    )
    return _Draft("betalingsregeling", text, "Kopie invorderingsbrief")


# ── Disputes ─────────────────────────────────────────────────────────


def _dispute(ctx: _Context, payload: DisputePayload) -> _Draft:
    f = ctx.f
    attachment = None
    if payload.reason == DisputeReason.NEVER_RECEIVED:
        reason = (
            "Ik heb deze dienst of dit product nooit afgenomen. Ik heb geen overeenkomst met u gesloten "
            "en herken deze vordering niet."
        )
    elif payload.reason == DisputeReason.ALREADY_PAID:
        reason = (
            f"Ik heb dit bedrag al volledig betaald op {f.date('payment_date', payload.payment_date)} "
            f"met betalingskenmerk {f.text('payment_reference', payload.payment_reference)}. "
            "Bijgevoegd vindt u een kopie van het betalingsbewijs."
        )
        attachment = "Kopie van het betalingsbewijs"
    elif payload.reason == DisputeReason.CANCELLED:
        reason = (
            f"Ik heb de overeenkomst tijdig opgezegd op {f.date('cancel_date', payload.cancel_date)}. "
            "Na deze opzegdatum kunnen geen kosten meer in rekening worden gebracht."
        )
    elif payload.reason == DisputeReason.AMOUNT_WRONG:
        reason = (
            f"Het gevorderde bedrag van {_claim(ctx)} is onjuist. Het juiste bedrag is "
            f"{f.amount('correct_amount', payload.correct_amount, label='juist bedrag')}."
        )
    else:
        reason = f.text(
            "other_reason", payload.other_reason, label="reden waarom u de vordering betwist"
        )

    case = _case(ctx)
    term = settings.letters.response_term_days
    text = (
        "Geachte heer/mevrouw,\n\n"
        f"Op {_received(ctx, payload.received_letter_date)} ontving ik uw brief met betrekking tot een "
        f"vermeende schuld van {_claim(ctx)} inzake dossiernummer {case}.\n\n"
        "Hierbij laat ik u weten dat ik deze vordering BETWIST.\n\n"
        f"REDEN BETWISTING:\n{reason}\n\n"
        "MIJN VERZOEK:\n\n"
        "Ik verzoek u:\n"
        "• de vordering te herzien;\n"
        "• mij een nadere specificatie en onderbouwing te sturen;\n"
        "• alle verdere incasso-acties te staken totdat deze kwestie is opgehelderd.\n\n"
        "Ik ben bereid in gesprek te gaan om tot een oplossing te komen, maar erken de vordering in de "
        "huidige vorm niet.\n\n"
        f"Ik verzoek u binnen {term} dagen schriftelijk te reageren met een onderbouwing van uw vordering.\n\n"
        f"{CLOSING}\n\n{_signature(ctx)}"
    )
    return _Draft(f"Betwisting vordering - Dossier {case}", text, attachment)


def _partial_recognition(ctx: _Context, payload: PartialRecognitionPayload) -> _Draft:
    f = ctx.f
    recognized = payload.recognized_amount
    disputed = payload.disputed_amount
    if disputed is None and recognized is not None and ctx.creditor.amount is not None:
        disputed = ctx.creditor.amount - recognized

    recognized_text = f.amount("recognized_amount", recognized, label="erkend bedrag")
    details = ""
    if payload.dispute_details and payload.dispute_details.strip():
        details = f"\nNadere toelichting: {payload.dispute_details.strip()}"

    case = _case(ctx)
    term = settings.letters.response_term_days
    text = (
        "Geachte heer/mevrouw,\n\n"
        f"Op {_received(ctx, payload.received_letter_date)} ontving ik uw brief met betrekking tot een "
        f"vermeende schuld van {_claim(ctx)} inzake dossiernummer {case}.\n\n"
        "Hierbij laat ik u weten dat ik deze vordering gedeeltelijk erken en gedeeltelijk betwist.\n\n"
        f"Ik erken een bedrag van {recognized_text} van de totale vordering. Voor dit erkende deel ben ik "
        "bereid een betalingsregeling te treffen of het direct te voldoen, afhankelijk van de afspraken "
        "die we kunnen maken.\n\n"
        f"Het resterende bedrag van {f.amount('disputed_amount', disputed, label='betwist bedrag')} betwist ik "
        f"om de volgende reden:\n\n{f.text('dispute_reason', payload.dispute_reason, label='reden betwisting')}"
        f"{details}\n\n"
        "MIJN VERZOEK:\n\n"
        "Ik verzoek u:\n"
        f"• de vordering te herzien naar het erkende bedrag van {recognized_text};\n"
        "• te reageren op de betwisting van het resterende deel, met een onderbouwing als u de "
        "betwisting niet erkent;\n"
        "• alle incasso-acties voor het betwiste deel te staken totdat deze kwestie is opgehelderd.\n\n"
        "Ik ben bereid in gesprek te gaan om tot een oplossing te komen.\n\n"
        f"Ik verzoek u binnen {term} dagen schriftelijk te reageren.\n\n"
        f"{CLOSING}\n\n{_signature(ctx)}"
    )
    return _Draft(f"Gedeeltelijke erkenning vordering - Dossier {case}", text)


def _already_paid(ctx: _Context, payload: AlreadyPaidPayload) -> _Draft:
    f = ctx.f
    term = settings.letters.response_term_days
    text = (
        f"{_address_blocks(ctx)}\n\n"
        f"Kenmerk: {_case(ctx)}\n"
        "Onderwerp: betaalde rekening\n\n"
        f"{_greeting(ctx.creditor)}\n\n"
        f"Op {_received(ctx, payload.received_letter_date)} kreeg ik van u een brief waarin u mij vraagt "
        f"om {_claim(ctx)} te betalen.\n\n"
        "Ik ben het niet eens met deze rekening, omdat ik al heb betaald. Op "
        f"{f.date('payment_date', payload.payment_date)} heb ik "
        f"{f.amount('payment_amount', payload.payment_amount)} overgemaakt met kenmerk "
        f"{f.text('payment_reference', payload.payment_reference)}. Het bewijs van betaling vindt u in de bijlage.\n\n"
        f"Ik verzoek u het dossier te sluiten en mij dit binnen {term} dagen schriftelijk te laten weten. "
        "Vindt u dat ik wel moet betalen, dan ontvang ik graag bewijs waaruit dat blijkt.\n\n"
        f"{_no_reply_close(term)}\n\n"
        f"{CLOSING}\n\n\n{_signature(ctx)}\n\n"
        "Bijlagen:\n- Bewijs van betaling"
    )
    return _Draft("betaalde rekening", text, "Bewijs van betaling")


def _verjaring(ctx: _Context, payload: VerjaringPayload) -> _Draft:
    term = settings.letters.response_term_days
    text = (
        f"{_address_blocks(ctx)}\n\n"
        f"Kenmerk: {_case(ctx)}\n"
        "Onderwerp: verjaarde rekening\n\n"
        f"{_greeting(ctx.creditor)}\n\n"
        f"Op {_received(ctx, payload.received_letter_date)} kreeg ik van u een brief waarin u mij vraagt "
        f"om {_claim(ctx)} te betalen.\n\n"
        "Deze rekening is verjaard. Ik verzoek u daarom dit dossier te sluiten en mij hierover binnen "
        f"{term} dagen een bericht te sturen.\n\n"
        "Vindt u dat ik deze rekening wel moet betalen? Dan ontvang ik graag bewijs waaruit blijkt dat "
        "de rekening niet verjaard is.\n\n"
        f"{_no_reply_close(term)}\n\n"
        f"{CLOSING}\n\n\n{_signature(ctx)}"
    )
    return _Draft("verjaarde rekening", text)


def _incassokosten(ctx: _Context, payload: IncassokostenPayload) -> _Draft:
    f = ctx.f
    if payload.reason == IncassoReason.NO_REMINDER:
        reason = (
            "Volgens de wet moet u mij eerst een betalingsherinnering sturen. Dat heeft u niet gedaan."
        )
    elif payload.reason == IncassoReason.DEFECTIVE_REMINDER:
        issues = "\n".join(f"• {issue}" for issue in payload.reason_b_issues if issue.strip())
        reason = (
            "U stuurde mij een herinneringsbrief die niet klopt. Hierin staat:\n\n"
            f"{issues or f.text('reason_b_issues', None, label='gebreken herinneringsbrief')}\n\n"
            "Uw herinneringsbrief voldoet daarom niet aan de eisen van de wet. U mag dus geen "
            "incassokosten rekenen."
        )
    elif payload.reason == IncassoReason.PAID_AFTER_REMINDER:
        reason = (
            "Ik heb de rekening al betaald na de herinnering die u eerder stuurde. Ik betaalde op "
            f"{f.date('reason_c_payment_date', payload.reason_c_payment_date)} en vermeldde daarbij het "
            f"kenmerk {f.text('reason_c_payment_reference', payload.reason_c_payment_reference, label='betalingskenmerk')}. "
            "De rekening is dus op tijd betaald."
        )
    elif payload.reason == IncassoReason.ABOVE_MAXIMUM:
        principal = ctx.creditor.original_amount
        statutory = max_collection_costs(principal) if principal is not None else None
        reason = (
            "De incassokosten die u rekent zijn te hoog. Volgens de wet mag u maximaal "
            f"{f.amount('reason_d_max_amount', payload.reason_d_max_amount, statutory, label='maximaal bedrag')} rekenen."
        )
    else:
        reason = f.text("reason", None, label="kies reden A, B, C of D")

    claim = _claim(ctx)
    if payload.original_payment_status == "paid":
        original = (
            f"Het oorspronkelijke bedrag van {claim} heb ik al betaald op "
            f"{f.date('original_paid_date', payload.original_paid_date)}."
        )
    else:
        original = f"Het oorspronkelijke bedrag van {claim} zal ik zo snel mogelijk aan u betalen."

    term = settings.letters.incasso_response_term_days
    text = (
        f"{_address_blocks(ctx)}\n\n"
        f"Kenmerk: {_case(ctx)}\n"
        "Onderwerp: bezwaar incassokosten\n\n\n"
        f"{_greeting(ctx.creditor)}\n\n"
        f"Op {_received(ctx, payload.received_letter_date)} kreeg ik van u een {payload.document_type or 'rekening'}. "
        f"Hieruit blijkt dat ik {claim} moet betalen voor "
        f"{f.text('product_name', payload.product_name, label='naam product of dienst')}. Bovenop dat bedrag "
        f"rekent u incassokosten van {f.amount('incasso_amount', payload.incasso_amount)}.\n\n"
        f"Ik ben het niet eens met deze incassokosten. {reason}\n\n"
        "De incassokosten die u vraagt, betaal ik daarom niet.\n\n"
        f"{original}\n\n"
        f"Ik verzoek u het dossier te sluiten en mij dit binnen {term} dagen schriftelijk te laten weten. "
        f"{_no_reply_close(term)}\n\n"
        "Ik wacht uw reactie af.\n\n"
        f"{CLOSING}\n\n\n{_signature(ctx)}"
    )
    return _Draft("bezwaar incassokosten", text)


# ── Modification requests ────────────────────────────────────────────


def _lowering_amount(ctx: _Context, payload: LoweringAmountPayload) -> _Draft:
    f = ctx.f
    case = _case(ctx)
    new_amount = f.amount("requested_new_amount", payload.requested_new_amount, label="nieuw maandbedrag")
    text = (
        "Geachte heer/mevrouw,\n\n"
        f"Betreft: Verzoek tot verlaging maandbedrag - Dossier {case}\n\n"
        f"Op dit moment los ik maandelijks {f.amount('monthly_payment', ctx.creditor.monthly_payment)} af "
        "op bovenstaande vordering.\n\n"
        "Door een onverwachte en ingrijpende wijziging in mijn financiële situatie kan ik dit bedrag niet "
        "langer betalen. Ik moet u daarom vragen onze afspraak aan te passen.\n\n"
        f"Na een zorgvuldige herberekening van mijn budget kan ik maandelijks maximaal {new_amount} missen.\n\n"
        f"Ik verzoek u het maandbedrag te verlagen naar {new_amount}. Ik wil mijn verplichtingen nakomen "
        "en hoop dat we samen tot een duurzame oplossing komen.\n\n"
        f"Ik zie uw reactie graag tegemoet.\n\n{CLOSING}\n{_signature(ctx)}"
    )
    return _Draft(f"Verzoek tot verlaging maandbedrag - Dossier {case}", text)


def _payment_holiday(ctx: _Context, payload: PaymentHolidayPayload) -> _Draft:
    f = ctx.f
    case = _case(ctx)
    months = f.text("requested_duration_months", payload.requested_duration_months, label="aantal")
    text = (
        "Geachte heer/mevrouw,\n\n"
        f"Betreft: Verzoek om tijdelijke betalingsvakantie - Dossier {case}\n\n"
        "Wij hebben een betalingsregeling waarbij ik maandelijks een bedrag aflos.\n\n"
        "Door onvoorziene omstandigheden ben ik tijdelijk niet in staat aan mijn betalingsverplichting "
        "te voldoen. Deze situatie is van korte duur; ik verwacht binnen enkele maanden weer stabiliteit "
        "te hebben.\n\n"
        f"Ik verzoek u daarom om een betalingsvakantie van {months} maanden, met ingang van vandaag.\n\n"
        "Na deze periode neem ik direct contact met u op om de betalingen te hervatten. Ik hoop op uw "
        "begrip en medewerking.\n\n"
        f"Ik zie uw reactie graag tegemoet.\n\n{CLOSING}\n{_signature(ctx)}"
    )
    return _Draft(f"Verzoek om tijdelijke betalingsvakantie - Dossier {case}", text)


def _stop_debt_counseling(ctx: _Context, payload: StopDebtCounselingPayload) -> _Draft:
    f = ctx.f
    case = _case(ctx)
    organization = f.text(
        "counseling_organization", payload.counseling_organization, label="naam schuldhulpinstantie"
    )
    text = (
        "Geachte heer/mevrouw,\n\n"
        f"Betreft: Stopzetting betalingsregeling en aanmelding schuldhulp - Dossier {case}\n\n"
        "Helaas moet ik u laten weten dat ik de huidige betalingsregeling niet langer kan voortzetten. "
        "Mijn financiële situatie is zo verslechterd dat aflossen op dit moment niet mogelijk is.\n\n"
        f"Ik heb mij aangemeld bij {organization} voor professionele schuldhulpverlening en wacht op de "
        "start van een traject.\n\n"
        "Conform de Gedragscode Schuldregeling verzoek ik u alle incasso-activiteiten te staken en de "
        "vordering te pauzeren in afwachting van een voorstel van mijn schuldhulpverlener.\n\n"
        "De schuldhulpverlener neemt te zijner tijd contact met u op.\n\n"
        f"Ik dank u voor uw begrip.\n\n{CLOSING}\n{_signature(ctx)}"
    )
    return _Draft(f"Stopzetting betalingsregeling en aanmelding schuldhulp - Dossier {case}", text)


# ── Dispatch ─────────────────────────────────────────────────────────

_BUILDERS: dict[TemplateType, Callable[[_Context, StrategyPayload], _Draft]] = {
    TemplateType.PROPOSAL: _proposal,
    TemplateType.DISPUTE: _dispute,
    TemplateType.PARTIAL_RECOGNITION: _partial_recognition,
    TemplateType.ALREADY_PAID: _already_paid,
    TemplateType.VERJARING: _verjaring,
    TemplateType.INCASSOKOSTEN_BEZWAAR: _incassokosten,
    TemplateType.LOWERING_AMOUNT: _lowering_amount,
    TemplateType.PAYMENT_HOLIDAY: _payment_holiday,
    TemplateType.STOP_DEBT_COUNSELING: _stop_debt_counseling,
}


def _filename(template_type: TemplateType, creditor: CreditorInfo, today: date) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", (creditor.name or "schuldeiser").lower()).strip("-") or "schuldeiser"
    return f"brief_{template_type.value}_{slug}_{today.isoformat()}.txt"


def build_letter(
    payload: StrategyPayload,
    debtor: DebtorInfo,
    creditor: CreditorInfo,
    today: date,
    breakdown: AffordabilityBreakdown | None = None,
) -> Letter:
    """Build the letter for a strategy payload.

    Args:
        payload: Strategy variant; its `template_type` selects the builder.
        debtor: Sender details.
        creditor: Recipient details and the claim.
        today: Date stamped on the letter.
        breakdown: Budget figures quoted by the budget-substantiated proposal.

    Returns:
        Letter with subject, text, attachment hint and the names of fields
        rendered as placeholders.
    """
    template_type = TemplateType(payload.template_type)
    resolver = FieldResolver()
    draft = _BUILDERS[template_type](_Context(debtor, creditor, today, breakdown, resolver), payload)

    if resolver.placeholders:
        logger.debug("Letter %s has placeholders: %s", template_type.value, ", ".join(resolver.placeholders))

    return Letter(
        template_type=template_type,
        subject=draft.subject,
        text=draft.text,
        attachment_hint=draft.attachment_hint,
        placeholders=resolver.placeholders,
        filename=_filename(template_type, creditor, today),
    )
