import datetime
import re
from typing import Iterable, List, Optional, Tuple

from jinja2 import DictLoader, Environment, select_autoescape
from markupsafe import Markup, escape

from .records import EXPIRED
from .results import Result

# ----------------------------
# Jinja2 in-memory templates
# ----------------------------
TEMPLATES = {
    "purchase_list.html": r"""
{%- for code, record in purchases %}
{%- set status = record.status(today) %}
<div class="purchase-detail-wrapper {{ status }}">
    <div class="purchase-detail-inner">
        <div class="detail-tag-container"><span class="detail-tag">Purchase Code:</span></div>
        <div class="detail-container"><span class="purchase-detail">{{ code }}</span></div>
    </div>
    <div class="purchase-detail-inner">
        <div class="detail-tag-container"><span class="detail-tag">Product:</span></div>
        <div class="detail-container"><span class="purchase-detail">{{ record.item_name }}</span></div>
    </div>
    <div class="purchase-detail-inner">
        <div class="detail-tag-container"><span class="detail-tag">Supported Until:</span></div>
        <div class="detail-container"><span class="purchase-detail">{{ record.supported_until|support_date }}</span></div>
    </div>
    <span class="valid-tag">{{ status }} for support</span>
</div>
{%- endfor %}
""",

    "helpscout_purchase.html": r"""
<span class="badge {{ color }}">Purchase {{ label }}</span>
<br /><br />
<h4>{{ record.item_name }}</h4>
<ul>
    <li>Buyer: {{ record.buyer }}</li>
    <li>Supported Until: {{ record.supported_until|support_date }}</li>
    <li>Purchase Code: {{ code }}</li>
</ul>
""",

    "helpscout_unverified.html": r"""<p>This user purchase code <code>{{ code }}</code> could not be verified.</p>""",

    "helpscout_empty.html": r"""<p>HelpScout request with invalid purchase codes data.</p>""",

    "ticket_email.html": r"""
You have received a ticket from: {{ from_name }} <br/><br/>
{%- if theme %}
Theme : {{ theme }} <br/><br/>
{%- endif %}
Their question detail is as follows: <br/><br/>
{{ message|autop }} <br/>
""",
}

_PARAGRAPH_RE = re.compile(r"\n\s*\n")


def support_date(value: datetime.date) -> str:
    """'1 January 2024' style, no zero padding."""
    return f"{value.day} {value:%B %Y}"


def autop(text: str) -> Markup:
    """Escape ``text`` and wrap blank-line separated blocks in paragraphs."""
    text = (text or "").replace("\r\n", "\n").replace("\r", "\n").strip()
    if not text:
        return Markup("")
    blocks = [b.strip() for b in _PARAGRAPH_RE.split(text) if b.strip()]
    paragraphs = [Markup("<br />\n").join(escape(line) for line in b.split("\n")) for b in blocks]
    return Markup("\n").join(Markup("<p>%s</p>") % p for p in paragraphs)


env = Environment(loader=DictLoader(TEMPLATES), autoescape=select_autoescape(["html"]))
env.filters["support_date"] = support_date
env.filters["autop"] = autop


def render(name: str, **ctx) -> str:
    return env.get_template(name).render(**ctx)


def purchase_statuses(client, codes: Iterable[str]) -> List[Tuple[str, Result]]:
    """Verify every code in detailed mode; status is left to render time."""
    return [(code, client.verify_purchase(code, details=True)) for code in codes or []]


def render_purchase_list(entries: List[Tuple[str, Result]], today: Optional[datetime.date] = None) -> str:
    purchases = [(code, result.value) for code, result in entries if result.ok]
    return render("purchase_list.html", purchases=purchases, today=today or datetime.date.today()).strip()


def render_helpscout(entries: List[Tuple[str, Result]], today: Optional[datetime.date] = None) -> List[str]:
    today = today or datetime.date.today()
    if not entries:
        return [render("helpscout_empty.html")]

    html = []
    for code, result in entries:
        if not result.ok:
            html.append(render("helpscout_unverified.html", code=code))
            continue
        record = result.value
        if record.status(today) == EXPIRED:
            color, label = "red", "Expired"
        else:
            color, label = "green", "Verified"
        html.append(render("helpscout_purchase.html", code=code, record=record,
                           color=color, label=label).strip())
    return html


def render_ticket_email(from_name: str, theme: str, message: str) -> str:
    return render("ticket_email.html", from_name=from_name, theme=theme, message=message).strip()
