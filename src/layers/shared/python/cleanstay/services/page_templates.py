"""Marketing pages of the public website.

Each page is a list of content blocks rendered into a shared layout that
carries the price calculator form and the chat widget mount. All content
goes through HTML escaping.
"""

import html as html_module

from cleanstay.services.chatbot_content import COLORS, COMPANY
from cleanstay.services.estimator import ServiceType, price_brackets

SERVICE_LABELS = {
    ServiceType.BASIC.value: "Základní úklid domácnosti",
    ServiceType.GENERAL.value: "Generální úklid",
    ServiceType.POST_RENO.value: "Úklid po rekonstrukci",
    ServiceType.AIRBNB.value: "Airbnb turn-over",
    ServiceType.OFFICE.value: "Kanceláře",
    ServiceType.SVJ.value: "SVJ – společné prostory",
}

PAGES = {
    "/": {
        "title": "Úklid domácností, kanceláří a Airbnb | CleanStay Praha",
        "description": (
            "Profesionální úklid bytů, kanceláří a Airbnb v Praze. "
            "Férové ceny, spolehlivost a rychlost. Vyzkoušejte CleanStay."
        ),
        "blocks": [
            {
                "type": "hero",
                "config": {
                    "headline": "Profesionální úklid domácností, kanceláří i Airbnb",
                    "subheadline": "Rychle. Spolehlivě. Za férové ceny.",
                    "buttonText": "Spočítejte si úklid",
                    "buttonLink": "#kalkulacka",
                },
            },
            {
                "type": "cards",
                "config": {
                    "title": "Naše služby",
                    "items": [
                        {
                            "title": "Úklid domácností",
                            "description": "Běžný, generální, expresní i úklid po rekonstrukci.",
                            "link": "/uklid-domacnosti",
                        },
                        {
                            "title": "Úklid firemních prostor",
                            "description": "Pravidelný úklid kanceláří, obchodů a dalších firemních prostor.",
                            "link": "/uklid-firem",
                        },
                        {
                            "title": "Airbnb & hotely",
                            "description": "Úklid, výměna prádla a kompletní správa vašich nemovitostí.",
                            "link": "/airbnb",
                        },
                    ],
                },
            },
            {
                "type": "testimonials",
                "config": {
                    "title": "Co říkají naši zákazníci",
                    "items": [
                        ("Skvělý servis! Úklid proběhl rychle a naprosto profesionálně. Doporučuji.", "Jana K., Praha"),
                        ("Moje Airbnb je díky nim vždy připravené. Nemusím nic řešit.", "Tomáš B., Praha"),
                        ("Úklid po rekonstrukci zvládli bez problémů. Skvělá domluva.", "Petra N., Praha"),
                    ],
                },
            },
        ],
    },
    "/airbnb": {
        "title": "Úklid a správa Airbnb apartmánů v Praze | CleanStay",
        "description": (
            "Kompletní úklid a správa Airbnb v Praze – výměna prádla, úklid, doplňování "
            "zásob a komunikace s hosty. Spolehlivý servis od CleanStay."
        ),
        "blocks": [
            {
                "type": "hero",
                "config": {
                    "headline": "Správa a úklid Airbnb apartmánů v Praze",
                    "subheadline": "Kompletní řešení pro hostitele. Od úklidu po praní prádla – vše na klíč.",
                    "buttonText": "Nezávazná poptávka",
                    "buttonLink": "#kontakt",
                },
            },
            {
                "type": "list",
                "config": {
                    "title": "Co pro vás zajistíme",
                    "items": [
                        "Kompletní úklid před i po každém hostu",
                        "Dezinfekce všech kontaktních ploch",
                        "Doplnění toaletních potřeb",
                        "Praní a výměna ložního prádla (60 Kč/kg)",
                        "Komunikace s hosty (volitelné)",
                        "Zajištění klíčového managementu",
                        "Pravidelné kontroly stavu apartmánu",
                    ],
                },
            },
            {
                "type": "text",
                "config": {
                    "title": "Praní prádla za 60 Kč/kg",
                    "paragraphs": [
                        "Ušetřete čas i starosti. Ložní prádlo vyzvedneme, vypereme a vrátíme čisté "
                        "a voňavé přímo do apartmánu. Ideální řešení pro častou rotaci hostů.",
                    ],
                },
            },
            {
                "type": "list",
                "config": {
                    "title": "Proč si vybrat CleanStay?",
                    "items": [
                        "Flexibilní termíny a rychlá reakce",
                        "Vlastní zkušenost s provozováním Airbnb bytů",
                        "Profesionální tým s důrazem na detail",
                        "Fakturace a přehledný reporting",
                        "Možnost dlouhodobé spolupráce",
                    ],
                },
            },
        ],
    },
    "/cenik": {
        "title": "Ceník úklidových služeb v Praze | CleanStay",
        "description": (
            "Přehledný ceník úklidových služeb pro domácnosti, firmy i Airbnb. "
            "Férové ceny, žádné skryté poplatky."
        ),
        "blocks": [
            {
                "type": "hero",
                "config": {
                    "headline": "Ceník našich úklidových služeb",
                    "subheadline": (
                        "Transparentní ceny, žádné skryté poplatky. Profesionální úklid v Praze "
                        "pro domácnosti, firmy i Airbnb."
                    ),
                    "buttonText": "Spočítejte si cenu",
                    "buttonLink": "#kalkulacka",
                },
            },
            {"type": "price_table", "config": {"title": "Orientační ceny"}},
            {
                "type": "list",
                "config": {
                    "title": "Doplňkové služby",
                    "items": [
                        "Kanceláře a SVJ: od 25 Kč/m², minimální zakázka 1 500 Kč",
                        "Mytí oken: 30–60 Kč/m²",
                        "Čištění spotřebičů: 250–450 Kč/kus",
                        "Praní prádla: 60 Kč/kg",
                        "Expresní příplatek: +20–40 %",
                    ],
                },
            },
        ],
    },
    "/uklid-domacnosti": {
        "title": "Úklid domácnosti v Praze | Pravidelně i jednorázově | CleanStay",
        "description": (
            "Hledáte spolehlivý úklid domácnosti v Praze? CleanStay nabízí pravidelný i "
            "jednorázový úklid, včetně generálního úklidu a mytí oken."
        ),
        "blocks": [
            {
                "type": "hero",
                "config": {
                    "headline": "Úklid domácnosti Praha",
                    "subheadline": (
                        "Pomůžeme vám udržet domov čistý a voňavý bez zbytečného stresu. "
                        "Úklid přizpůsobíme vašim požadavkům a harmonogramu."
                    ),
                    "buttonText": "Spočítejte si cenu úklidu",
                    "buttonLink": "#kalkulacka",
                },
            },
            {
                "type": "list",
                "config": {
                    "title": "Co zahrnuje náš domácí úklid?",
                    "items": [
                        "Vytírání podlah, vysávání koberců a čalounění",
                        "Úklid kuchyně – včetně spotřebičů",
                        "Čištění koupelny a WC",
                        "Utírání prachu, leštění zrcadel a skleněných ploch",
                        "Mytí oken (na přání)",
                    ],
                },
            },
            {
                "type": "list",
                "config": {
                    "title": "Proč právě CleanStay?",
                    "items": [
                        "Flexibilní termíny (včetně víkendů)",
                        "Pečlivý výběr a školení uklízeček",
                        "Možnost pravidelného i jednorázového úklidu",
                        "Transparentní ceny – žádné skryté poplatky",
                    ],
                },
            },
            {
                "type": "text",
                "config": {
                    "title": "Úklidové služby pro všechny městské části Prahy",
                    "paragraphs": [
                        "Poskytujeme úklid domácností po celé Praze – Praha 1 až Praha 10 i přilehlé "
                        "oblasti. Ať už bydlíte na Vinohradech, na Smíchově nebo v Letňanech, rádi "
                        "za vámi přijedeme.",
                    ],
                },
            },
        ],
    },
    "/uklid-firem": {
        "title": "Úklid kanceláří a společných prostor SVJ v Praze | CleanStay",
        "description": (
            "CleanStay zajišťuje pravidelný i jednorázový úklid kanceláří a společných "
            "prostor SVJ v Praze."
        ),
        "blocks": [
            {
                "type": "hero",
                "config": {
                    "headline": "Profesionální úklid firem a SVJ v Praze",
                    "subheadline": (
                        "Komplexní a pravidelný úklid kanceláří, komerčních prostor a společných "
                        "částí bytových domů. Denně, týdně i jednorázově."
                    ),
                    "buttonText": "Nezávazná poptávka",
                    "buttonLink": "#kontakt",
                },
            },
            {
                "type": "list",
                "config": {
                    "title": "Co zahrnuje úklid pro firmy",
                    "items": [
                        "Vysávání a vytírání podlah",
                        "Úklid kuchyňky, lednice, mikrovlnky",
                        "Úklid a dezinfekce toalet",
                        "Vynášení odpadků a výměna pytlů",
                        "Otírání prachu z nábytku, parapetů a techniky",
                        "Leštění skleněných ploch",
                    ],
                },
            },
            {
                "type": "list",
                "config": {
                    "title": "Úklid společných prostor pro SVJ",
                    "items": [
                        "Úklid vstupních hal, chodeb a schodišť",
                        "Čištění výtahů, madel a klik",
                        "Utírání poštovních schránek a zábradlí",
                        "Vynášení domovního odpadu",
                        "Sezónní úklid (např. mytí oken, úklid po malování)",
                    ],
                },
            },
            {
                "type": "testimonials",
                "config": {
                    "title": "Zkušenosti našich klientů",
                    "items": [
                        (
                            "Máme kanceláře na Praze 4 a CleanStay se o úklid stará už přes rok. "
                            "Maximální spokojenost!",
                            "Jan K., Office Manager",
                        ),
                        (
                            "Úklid společných prostor v domě probíhá pravidelně a kvalitně. Doporučuji!",
                            "Petra S., SVJ Praha 3",
                        ),
                    ],
                },
            },
        ],
    },
    "/gdpr": {
        "title": "Zásady ochrany osobních údajů (GDPR) | CleanStay",
        "description": "Informace o zpracování osobních údajů společností CleanStay v souladu s GDPR.",
        "blocks": [
            {
                "type": "text",
                "config": {
                    "title": "Zásady ochrany osobních údajů (GDPR)",
                    "paragraphs": [
                        "Správcem vašich osobních údajů je CleanStay, se sídlem v Praze, "
                        f"kontaktní email: {COMPANY['email']}, telefon: {COMPANY['phone']}.",
                    ],
                },
            },
            {
                "type": "list",
                "config": {
                    "title": "Jaké osobní údaje zpracováváme",
                    "items": [
                        "Identifikační údaje: jméno, příjmení",
                        "Kontaktní údaje: email, telefonní číslo, adresa",
                        "Objednávkové údaje: informace o objednaných službách, termínech, požadavcích",
                        "Komunikační údaje: zprávy z kontaktního formuláře, chatbotu, WhatsApp konverzace",
                        "Technické údaje: IP adresa, cookies (pro fungování webu)",
                    ],
                },
            },
            {
                "type": "list",
                "config": {
                    "title": "Doba uložení údajů",
                    "items": [
                        "Objednávky a faktury: 10 let (daňové a účetní předpisy)",
                        "Marketingové souhlasy: do odvolání souhlasu",
                        "Kontaktní formuláře: 2 roky od posledního kontaktu",
                        "Chatbot konverzace: 1 rok",
                    ],
                },
            },
        ],
    },
}

# Static files of the old multi-page site and their routed replacements
LEGACY_REDIRECTS = {
    "/index.html": "/",
    "/airbnb.html": "/airbnb",
    "/cenik.html": "/cenik",
    "/uklid-domacnosti.html": "/uklid-domacnosti",
    "/uklid-firem.html": "/uklid-firem",
    "/gdpr.html": "/gdpr",
}


def _escape_html(value: str | None) -> str:
    """Escape a value for safe HTML insertion."""
    if value is None:
        return ""
    return html_module.escape(str(value))


def _sanitize_url(url: str | None) -> str:
    """Allow only relative, anchor, http(s), mailto and tel links."""
    if not url:
        return "#"
    url = str(url).strip()
    lower_url = url.lower()
    if lower_url.startswith(("/", "#", "https://", "http://", "mailto:", "tel:")):
        return _escape_html(url)
    return "#"


def list_pages() -> list[str]:
    """Routed page paths."""
    return list(PAGES)


def get_page(path: str) -> dict | None:
    """Page definition for a path, tolerating a trailing slash."""
    if path != "/":
        path = path.rstrip("/")
    return PAGES.get(path)


def _render_hero_block(config: dict) -> str:
    headline = _escape_html(config.get("headline", ""))
    subheadline = _escape_html(config.get("subheadline", ""))
    button_text = _escape_html(config.get("buttonText", ""))
    button_link = _sanitize_url(config.get("buttonLink"))

    button_html = ""
    if button_text:
        button_html = f'<a href="{button_link}" class="btn btn-primary">{button_text}</a>'

    return f'''
    <section class="hero">
        <h1>{headline}</h1>
        <p>{subheadline}</p>
        {button_html}
    </section>'''


def _render_cards_block(config: dict) -> str:
    title = _escape_html(config.get("title", ""))

    items_html = ""
    for item in config.get("items", []):
        items_html += f'''
        <div class="card">
            <h3>{_escape_html(item.get("title"))}</h3>
            <p>{_escape_html(item.get("description"))}</p>
            <a href="{_sanitize_url(item.get("link"))}">Více →</a>
        </div>'''

    return f'''
    <section class="cards">
        <h2>{title}</h2>
        <div class="grid">{items_html}
        </div>
    </section>'''


def _render_list_block(config: dict) -> str:
    title = _escape_html(config.get("title", ""))
    items_html = "".join(f"\n            <li>{_escape_html(item)}</li>" for item in config.get("items", []))

    return f'''
    <section class="list">
        <h2>{title}</h2>
        <ul>{items_html}
        </ul>
    </section>'''


def _render_text_block(config: dict) -> str:
    title = _escape_html(config.get("title", ""))
    paragraphs = "".join(f"\n        <p>{_escape_html(p)}</p>" for p in config.get("paragraphs", []))

    return f'''
    <section class="text">
        <h2>{title}</h2>{paragraphs}
    </section>'''


def _render_testimonials_block(config: dict) -> str:
    title = _escape_html(config.get("title", ""))

    items_html = ""
    for quote, author in config.get("items", []):
        items_html += f'''
        <blockquote>
            <p>„{_escape_html(quote)}"</p>
            <cite>– {_escape_html(author)}</cite>
        </blockquote>'''

    return f'''
    <section class="testimonials">
        <h2>{title}</h2>{items_html}
    </section>'''


def _format_czk(amount: int) -> str:
    return f"{amount:,}".replace(",", " ") + " Kč"


def _render_price_table_block(config: dict) -> str:
    title = _escape_html(config.get("title", ""))

    rows_html = ""
    for row in price_brackets():
        rows_html += f'''
            <tr>
                <td>{_escape_html(SERVICE_LABELS.get(row["service"], row["service"]))}</td>
                <td>{_escape_html(row["size"])}</td>
                <td>od {_escape_html(_format_czk(row["price_from"]))}</td>
            </tr>'''

    return f'''
    <section class="price-table">
        <h2>{title}</h2>
        <table>
            <thead>
                <tr><th>Služba</th><th>Velikost</th><th>Cena od</th></tr>
            </thead>
            <tbody>{rows_html}
            </tbody>
        </table>
        <p class="note">Orientační ceny, vše dle dohody.</p>
    </section>'''


_BLOCK_RENDERERS = {
    "hero": _render_hero_block,
    "cards": _render_cards_block,
    "list": _render_list_block,
    "text": _render_text_block,
    "testimonials": _render_testimonials_block,
    "price_table": _render_price_table_block,
}


def render_block_html(block: dict) -> str:
    """Render a single content block. Unknown block types render nothing."""
    renderer = _BLOCK_RENDERERS.get(block.get("type", ""))
    if not renderer:
        return ""
    return renderer(block.get("config", {}))


def _render_calculator() -> str:
    options = "".join(
        f'<option value="{_escape_html(value)}">{_escape_html(label)}</option>'
        for value, label in SERVICE_LABELS.items()
    )
    return f'''
    <section id="kalkulacka" class="calculator">
        <h2>Spočítejte si cenu úklidu</h2>
        <form data-estimate-endpoint="/public/estimate" method="post">
            <select name="service">{options}</select>
            <input type="number" name="sqm" min="1" placeholder="Plocha (m²)">
            <input type="number" name="rooms" min="0" placeholder="Počet pokojů">
            <input type="number" name="windowsSqm" min="0" placeholder="Okna (m²)">
            <input type="number" name="appliances" min="0" placeholder="Spotřebiče (ks)">
            <input type="number" name="laundryKg" min="0" placeholder="Prádlo (kg)">
            <label><input type="checkbox" name="express"> Expres</label>
            <button type="submit">Spočítat</button>
        </form>
        <p class="estimate-result" aria-live="polite"></p>
    </section>'''


def _render_contact_form() -> str:
    return '''
    <section id="kontakt" class="contact">
        <h2>Kontaktujte nás</h2>
        <form action="/public/contact" method="post">
            <input type="text" name="name" placeholder="Jméno" required>
            <input type="email" name="email" placeholder="E-mail" required>
            <textarea name="message" placeholder="Zpráva" required></textarea>
            <input type="text" name="_honeypot" class="hidden" tabindex="-1" autocomplete="off">
            <button type="submit">Odeslat</button>
        </form>
    </section>'''


def render_layout(title: str, description: str, body: str) -> str:
    """Wrap page content in the site layout."""
    return f'''<!DOCTYPE html>
<html lang="cs">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{_escape_html(title)}</title>
<meta name="description" content="{_escape_html(description)}">
<style>:root {{ --primary: {COLORS["primary"]}; --secondary: {COLORS["secondary"]}; --text: {COLORS["text"]}; }}</style>
</head>
<body>
<header>
    <a href="/" class="logo">{_escape_html(COMPANY["name"])}</a>
    <nav>
        <a href="/uklid-domacnosti">Domácnosti</a>
        <a href="/uklid-firem">Firmy a SVJ</a>
        <a href="/airbnb">Airbnb</a>
        <a href="/cenik">Ceník</a>
    </nav>
</header>
<main>{body}
</main>
<footer>
    <p>{_escape_html(COMPANY["name"])} · {_escape_html(COMPANY["city"])} · <a href="tel:{_escape_html(COMPANY["phone"])}">{_escape_html(COMPANY["phone"])}</a> · <a href="mailto:{_escape_html(COMPANY["email"])}">{_escape_html(COMPANY["email"])}</a></p>
    <p><a href="/gdpr">Ochrana osobních údajů</a></p>
</footer>
<div id="cleanstay-chat" data-config-endpoint="/public/chat/config" data-chat-endpoint="/public/chat"></div>
</body>
</html>'''


def render_page(path: str) -> str | None:
    """Render a routed page, or None if the path has no page."""
    page = get_page(path)
    if not page:
        return None

    body = "".join(render_block_html(block) for block in page["blocks"])
    body += _render_calculator() + _render_contact_form()
    return render_layout(page["title"], page["description"], body)


def render_not_found() -> str:
    """The 404 page."""
    body = '''
    <section class="hero">
        <h1>Stránka nenalezena</h1>
        <p>Tato stránka neexistuje nebo byla přesunuta.</p>
        <a href="/" class="btn btn-primary">Zpět na úvod</a>
    </section>'''
    return render_layout("Stránka nenalezena | CleanStay", "Stránka nenalezena", body)
