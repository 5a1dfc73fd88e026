"""Static content for the chat widget and the assistant's prompt."""

from cleanstay.services.intent import Intent

COMPANY = {
    "name": "CleanStay",
    "city": "Praha",
    "sla_minutes": 30,
    "nonstop": True,
    "express": True,
    "phone": "+420776292312",
    "email": "info@cleanstay.cz",
}

SERVICES = [
    "Domácnosti – základní úklid",
    "Domácnosti – generální úklid",
    "Úklid po rekonstrukci",
    "Expresní úklid (Praha)",
    "Airbnb správa a úklid (praní 60 Kč/kg)",
    "Firmy / Kanceláře",
    "SVJ – společné prostory",
    "Mytí oken",
    "Čištění spotřebičů (trouba, lednice, digestoř)",
    "Doplňkové práce",
]

PRICE_BRACKETS = [
    "Menší byt (1+kk–2+kk): od 890–1 290 Kč",
    "Střední byt (3+kk–4+kk): od 1 390–1 990 Kč",
    "Větší byt / dům (5+kk+): od 2 490 Kč",
    "Generální úklid: +30–60 % vs. základ",
    "Po rekonstrukci: +50–100 % dle znečištění",
    "Mytí oken: 30–60 Kč/m²",
    "Čištění spotřebičů: 250–450 Kč/kus",
    "Praní prádla: 60 Kč/kg",
    "Expresní příplatek: +20–40 %",
]

FAQ = [
    ("Jak rychle můžete přijet?", "V Praze expresně obvykle do 3 h dle kapacit."),
    ("Kolik stojí úklid domácnosti?", "Orientačně od 890–1290 Kč (menší byt)."),
    (
        "Co je v základním úklidu?",
        "Prach, vysávání, vytírání, kuchyňské plochy, koupelna/WC, koš. Doplňky na přání.",
    ),
    ("Máte vlastní prostředky?", "Ano, můžeme přivézt vlastní vybavení i chemii."),
    ("Pravidelný úklid?", "Výhodnější než jednorázový."),
    ("Po rekonstrukci / generální?", "Ano, děláme i tyto typy."),
    ("Mytí oken / spotřebičů?", "Ano, dle domluvy."),
    ("Airbnb správa?", "Turnover vč. praní (60 Kč/kg), doplňování, fotodokumentace."),
    ("Fakturace pro firmy/SVJ?", "Samozřejmostí."),
    ("Záruka spokojenosti?", "Když něco nesedí, napravíme co nejdřív."),
    ("Musím být doma? Klíče?", "Nemusíte; bezpečné předání domluvíme."),
    ("Storno?", "Bezplatně do 24 h předem, jinak může být poplatek."),
]

CHIPS = ["Domácnost", "Airbnb", "Firma/SVJ", "Expres dnes?", "Ceník", "Kontakt"]

COLORS = {
    "primary": "#34D399",
    "secondary": "#8B5CF6",
    "background": "#f9fafb",
    "white": "#ffffff",
    "text": "#111827",
    "text_muted": "#4B5563",
    "border": "#E5E7EB",
    "success": "#10B981",
    "warning": "#F59E0B",
    "error": "#EF4444",
}

GDPR_SENTENCE = (
    "Souhlasím se zpracováním osobních údajů za účelem vypracování nabídky "
    "a kontaktování ohledně služby CleanStay."
)

ADMIN_DEEPLINK_PATTERN = "/admin/zpravy/{conversation_id}"
ADMIN_ALERT_TEMPLATE = "Nova zprava na webu: {preview} Otevrit: {link}"

SYSTEM_PROMPT_CZ = """\
Jsi **CleanStay asistent** (Praha). Tvojí prioritou je:
1) rychle poradit,
2) dát **orientační rozpětí** ceny (nikdy přesnou částku),
3) získat **kontakt** a převést ho na poptávku.

Piš **stručně, lidsky a přehledně**. Nikdy nevypisuj JSON ani kód.
Používej slova **„orientačně"**, **„od"**, **„dle dohody"**.
Když si nejsi jistý, polož krátkou doplňující otázku.
Po 3. výměně vždy nabídni zanechání kontaktu.
**NIKDY neslibuj zavolání "do 30 minut"** - to se zobrazí automaticky až po vyplnění kontaktního formuláře uživatelem.
Po získání kontaktu (email/telefon) jednoduše poděkuj a případně polož **jednu** praktickou otázku (např. klíče: trezor/recepce/osobně), ale NEslibuj zavolání.

**Služby:**
- Domácnosti (základní, generální), Po rekonstrukci
- **Airbnb turn-over** (+ praní 60 Kč/kg)
- Firmy/Kanceláře, SVJ
- Expresní úklid (Praha), Mytí oken, Spotřebiče

**Orientační ceny (vždy rozpětí / „od"):**
- 1+kk–2+kk (domácnost): **890–1 290 Kč**
- 3+kk–4+kk: **1 390–1 990 Kč**
- 5+kk+: **od 2 490 Kč**
- Generální: **+30–60 %** vs. základ
- Po rekonstrukci: **+50–100 %** dle znečištění
- **Airbnb turn-over (1+kk ~30 m²): od 600–950 Kč** za úklid bytu bez praní
  (Airbnb bývá **levnější** než domácnost stejné velikosti, **pokud není praní**.
  S praním je cena srovnatelná; praní je **60 Kč/kg**.)
- Mytí oken: **30–60 Kč/m²**
- Spotřebiče: **250–450 Kč/kus**
- Expres: **+20–40 %** dle kapacit

**Scénáře – co se ptát a jak vést:**
- Domácnost základ: dispozice/m², stav, frekvence, termín (expres?). Nabídni okna/spotřebiče.
- Generální: m², důvody (mastnota/kámen), okna/spotřebiče, termín. Říkej „+30–60 %".
- Po rekonstrukci: m², stupeň znečištění, okna, termín. „+50–100 % dle znečištění".
- **Airbnb**: m²/dispozice, **praní (kg)**, zásoby, **klíče** (trezor/recepce/osobně), frekvence/obsazenost.
  Nabídni 2 balíčky: **Základ (bez praní)** / **Komplet (s praním 60 Kč/kg)**.
- Expres: typ služby, m², deadline dnes/čas, Praha. Přidej „+20–40 %".
- Firmy/Kanceláře: m², patra, frekvence, čas. „od 25 Kč/m² (min. zakázka)".
- SVJ: vchody/patra, plocha, frekvence, okna/venkovní.
- Okna: m², přístupnost, podlaží. „30–60 Kč/m²."
- Spotřebiče: počet kusů, stav. „250–450 Kč/kus."

**Námitky (cena):**
- „Chápu. U pravidelné spolupráce držíme spodní hranici. Vše je **dle dohody**."
- „Airbnb je obvykle levnější bez praní. Rád přizpůsobím rozsah."

**GDPR souhlas (při sběru):**
„**{gdpr}**"
""".format(gdpr=GDPR_SENTENCE)


def intent_hint(intent: str) -> str:
    """Short system hint steering the reply toward the detected intent."""
    return (
        f"Zjištěný záměr: {intent}. "
        'Pokud "price" → sděl krátké rozpětí a co ovlivňuje cenu. '
        'Pokud "service" → stručně popiš relevantní službu. '
        'Pokud "contact"/"booking" → nabídni zanechání kontaktu.'
    )


# Canned replies used when the LLM is disabled or fails
FALLBACK_REPLIES = {
    Intent.PRICE.value: (
        "Orientačně: menší byt od 890–1 290 Kč, střední od 1 390–1 990 Kč, "
        "větší od 2 490 Kč. Cenu ovlivňuje velikost, stav a doplňky (okna, spotřebiče). "
        "Vše dle dohody. Napíšete mi m² nebo dispozici?"
    ),
    Intent.SERVICE.value: (
        "Děláme domácnosti, generální úklid i úklid po rekonstrukci, Airbnb turn-over "
        "(praní 60 Kč/kg), firmy a SVJ. V Praze i expresně. O jakou službu máte zájem?"
    ),
    Intent.CONTACT.value: (
        "Rádi se vám ozveme. Zanechte prosím e-mail nebo telefon ve formuláři níže."
    ),
    Intent.BOOKING.value: (
        "Super, termín domluvíme. Zanechte prosím kontakt a pár detailů "
        "(m², typ úklidu, termín) a ozveme se."
    ),
    Intent.COMPLAINT.value: (
        "Mrzí nás to. Napište prosím, co nesedělo, a zanechte kontakt. "
        "Napravíme to co nejdřív."
    ),
    Intent.OTHER.value: (
        "Dobrý den, jsem asistent CleanStay. Pomohu s cenou, službami i termínem. "
        "S čím mohu pomoci?"
    ),
}


def fallback_reply(intent: str) -> str:
    """Deterministic reply for an intent."""
    return FALLBACK_REPLIES.get(intent, FALLBACK_REPLIES[Intent.OTHER.value])


def widget_config() -> dict:
    """Public configuration consumed by the chat widget."""
    return {
        "company": COMPANY,
        "services": SERVICES,
        "price_brackets": PRICE_BRACKETS,
        "faq": [{"question": q, "answer": a} for q, a in FAQ],
        "chips": CHIPS,
        "colors": COLORS,
        "gdpr_sentence": GDPR_SENTENCE,
    }
