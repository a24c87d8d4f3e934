from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal

from skystatus.modules.statement.types import Language, StatusLevel

BalanceKind = Literal["xp", "uxp", "miles"]

TransactionCategory = Literal[
    "earned",
    "debit",
    "requalification",
    "flight",
    "creditCard",
    "hotel",
    "subscription",
    "transfer",
    "promo",
    "purchase",
    "saf",
    "firstFlight",
]


@dataclass(frozen=True)
class LocalePatterns:
    """Everything language-specific the extractors need for one statement language."""

    language: Language
    months: Mapping[str, int]
    month_names: tuple[str, ...]
    detection_keywords: tuple[str, ...]
    # All must match for the month-name bonus to apply.
    month_hints: tuple[re.Pattern[str], ...]
    trip_header: re.Pattern[str]
    status_names: Mapping[StatusLevel, tuple[str, ...]]
    requalification: tuple[str, ...]
    balance_labels: Mapping[BalanceKind, tuple[str, ...]]
    categories: Mapping[TransactionCategory, tuple[str, ...]]


def _hints(*patterns: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(p, re.I) for p in patterns)


def _statuses(explorer: str, silver: str, gold: str, platinum: str) -> dict[StatusLevel, tuple[str, ...]]:
    def names(english: str, local: str) -> tuple[str, ...]:
        return (english,) if english == local else (english, local)

    return {
        StatusLevel.EXPLORER: names("explorer", explorer),
        StatusLevel.SILVER: names("silver", silver),
        StatusLevel.GOLD: names("gold", gold),
        StatusLevel.PLATINUM: names("platinum", platinum),
        StatusLevel.ULTIMATE: ("ultimate",),
    }


EN = LocalePatterns(
    language=Language.EN,
    months={
        "jan": 1, "january": 1, "feb": 2, "february": 2, "mar": 3, "march": 3,
        "apr": 4, "april": 4, "may": 5, "jun": 6, "june": 6, "jul": 7, "july": 7,
        "aug": 8, "august": 8, "sep": 9, "sept": 9, "september": 9,
        "oct": 10, "october": 10, "nov": 11, "november": 11, "dec": 12, "december": 12,
    },
    month_names=(
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    ),
    detection_keywords=("my trip to", "earned miles", "miles earned", "first flight", "spent", "transfer"),
    month_hints=(),
    trip_header=re.compile(r"My\s+trip\s+to", re.I),
    status_names=_statuses("explorer", "silver", "gold", "platinum"),
    requalification=("requalification", "requalified", "renewed", "status renewed"),
    balance_labels={
        "xp": ("xp balance", "total xp", "current xp", "experience points"),
        "uxp": ("uxp balance", "ultimate xp", "u-xp"),
        "miles": ("miles balance", "total miles", "available miles", "miles available"),
    },
    categories={
        "earned": ("earned", "received", "awarded", "credited", "gained"),
        "debit": ("debit", "spent", "used", "redeemed", "debited"),
        "requalification": ("requalification", "requalified", "renewed", "status renewed", "level renewed"),
        "flight": ("flight", "fly", "flying", "trip"),
        "creditCard": ("credit card", "card spending", "amex", "american express", "mastercard", "visa"),
        "hotel": ("hotel", "accommodation", "accor", "all-accor", "marriott", "stay"),
        "subscription": ("subscription", "flying blue+", "fb+", "membership"),
        "transfer": ("transfer", "transferred", "points transfer", "partner transfer"),
        "promo": ("promo", "promotion", "bonus", "offer", "special offer", "campaign"),
        "purchase": ("purchase", "bought", "buy", "purchased miles"),
        "saf": ("saf", "sustainable", "sustainable aviation fuel", "saf contribution"),
        "firstFlight": ("first flight", "welcome", "welcome bonus", "new member"),
    },
)

NL = LocalePatterns(
    language=Language.NL,
    months={
        "jan": 1, "januari": 1, "feb": 2, "februari": 2, "mrt": 3, "maart": 3,
        "apr": 4, "april": 4, "mei": 5, "jun": 6, "juni": 6, "jul": 7, "juli": 7,
        "aug": 8, "augustus": 8, "sep": 9, "sept": 9, "september": 9,
        "okt": 10, "oktober": 10, "nov": 11, "november": 11, "dec": 12, "december": 12,
    },
    month_names=(
        "Januari", "Februari", "Maart", "April", "Mei", "Juni",
        "Juli", "Augustus", "September", "Oktober", "November", "December",
    ),
    detection_keywords=("mijn reis naar", "gespaarde miles", "bestede", "overdragen", "eerste vlucht"),
    month_hints=_hints(r"\bmrt\b|\bmei\b|\bokt\b"),
    trip_header=re.compile(r"Mijn\s+reis\s+naar", re.I),
    status_names=_statuses("ontdekker", "zilver", "goud", "platina"),
    requalification=("hernieuwing", "hernieuwd", "herkwalificatie", "status hernieuwd"),
    balance_labels={
        "xp": ("xp saldo", "totaal xp", "huidige xp", "ervaringspunten"),
        "uxp": ("uxp saldo", "ultimate xp"),
        "miles": ("miles saldo", "totaal miles", "beschikbare miles"),
    },
    categories={
        "earned": ("gespaarde", "gespaard", "ontvangen", "verdiend", "bijgeschreven"),
        "debit": ("uitgegeven", "gebruikt", "ingewisseld", "afgeschreven"),
        "requalification": ("hernieuwing", "hernieuwd", "herkwalificatie", "status hernieuwd"),
        "flight": ("vlucht", "vliegen", "reis"),
        "creditCard": ("creditcard", "kaartuitgaven", "amex", "american express"),
        "hotel": ("hotel", "verblijf", "accor", "all-accor", "accommodatie"),
        "subscription": ("abonnement", "flying blue+", "fb+", "lidmaatschap"),
        "transfer": ("overdracht", "overgemaakt", "punten overdracht"),
        "promo": ("promo", "promotie", "bonus", "aanbieding", "actie", "campagne"),
        "purchase": ("aankoop", "gekocht", "kopen", "gekochte miles"),
        "saf": ("saf", "duurzaam", "duurzame vliegtuigbrandstof", "saf bijdrage"),
        "firstFlight": ("eerste vlucht", "welkom", "welkomstbonus", "nieuw lid"),
    },
)

FR = LocalePatterns(
    language=Language.FR,
    months={
        "jan": 1, "janvier": 1, "fév": 2, "fevrier": 2, "février": 2, "mars": 3,
        "avr": 4, "avril": 4, "mai": 5, "jui": 6, "juin": 6, "juil": 7, "juillet": 7,
        "aoû": 8, "aout": 8, "août": 8, "sep": 9, "sept": 9, "septembre": 9,
        "oct": 10, "octobre": 10, "nov": 11, "novembre": 11,
        "déc": 12, "decembre": 12, "décembre": 12,
    },
    month_names=(
        "Janvier", "Février", "Mars", "Avril", "Mai", "Juin",
        "Juillet", "Août", "Septembre", "Octobre", "Novembre", "Décembre",
    ),
    detection_keywords=("mon voyage", "miles acquis", "dépensé", "premier vol", "transfert"),
    month_hints=_hints(r"\bfév\b|\bavr\b|\baoû\b|\bdéc\b"),
    trip_header=re.compile(r"Mon\s+voyage", re.I),
    status_names=_statuses("explorateur", "argent", "or", "platine"),
    requalification=("requalification", "requalifié", "renouvelé", "statut renouvelé"),
    balance_labels={
        "xp": ("solde xp", "total xp", "xp actuel", "points expérience"),
        "uxp": ("solde uxp", "ultimate xp"),
        "miles": ("solde miles", "total miles", "miles disponibles"),
    },
    categories={
        "earned": ("acquis", "reçu", "crédité", "gagné", "obtenu"),
        "debit": ("dépensé", "utilisé", "échangé", "débité"),
        "requalification": ("requalification", "requalifié", "renouvelé", "statut renouvelé"),
        "flight": ("vol", "voler", "voyage"),
        "creditCard": ("carte de crédit", "dépenses carte", "amex", "american express"),
        "hotel": ("hôtel", "hébergement", "accor", "all-accor", "séjour"),
        "subscription": ("abonnement", "flying blue+", "fb+", "adhésion"),
        "transfer": ("transfert", "transféré", "transfert de points"),
        "promo": ("promo", "promotion", "bonus", "offre", "offre spéciale"),
        "purchase": ("achat", "acheté", "acheter", "miles achetés"),
        "saf": ("saf", "durable", "carburant aviation durable", "contribution saf"),
        "firstFlight": ("premier vol", "bienvenue", "bonus bienvenue", "nouveau membre"),
    },
)

DE = LocalePatterns(
    language=Language.DE,
    months={
        "jan": 1, "januar": 1, "feb": 2, "februar": 2, "mär": 3, "mrz": 3, "maerz": 3, "märz": 3,
        "apr": 4, "april": 4, "mai": 5, "jun": 6, "juni": 6, "jul": 7, "juli": 7,
        "aug": 8, "august": 8, "sep": 9, "sept": 9, "september": 9,
        "okt": 10, "oktober": 10, "nov": 11, "november": 11, "dez": 12, "dezember": 12,
    },
    month_names=(
        "Januar", "Februar", "März", "April", "Mai", "Juni",
        "Juli", "August", "September", "Oktober", "November", "Dezember",
    ),
    detection_keywords=("meine reise", "gesammelte meilen", "ausgegeben", "erster flug", "übertragung"),
    month_hints=_hints(r"\bmär\b|\bmrz\b|\bdez\b"),
    trip_header=re.compile(r"Meine\s+Reise", re.I),
    status_names=_statuses("entdecker", "silber", "gold", "platin"),
    requalification=("requalifizierung", "requalifiziert", "erneuert", "status erneuert"),
    balance_labels={
        "xp": ("xp guthaben", "gesamt xp", "aktuell xp", "erfahrungspunkte"),
        "uxp": ("uxp guthaben", "ultimate xp"),
        "miles": ("meilen guthaben", "gesamt meilen", "verfügbare meilen"),
    },
    categories={
        "earned": ("gesammelt", "erhalten", "gutgeschrieben", "verdient"),
        "debit": ("ausgegeben", "verwendet", "eingelöst", "abgebucht"),
        "requalification": ("requalifizierung", "requalifiziert", "erneuert", "status erneuert"),
        "flight": ("flug", "fliegen", "reise"),
        "creditCard": ("kreditkarte", "kartenausgaben", "amex", "american express"),
        "hotel": ("hotel", "unterkunft", "accor", "all-accor", "aufenthalt"),
        "subscription": ("abonnement", "flying blue+", "fb+", "mitgliedschaft"),
        "transfer": ("übertragung", "übertragen", "punkteübertragung"),
        "promo": ("promo", "aktion", "bonus", "angebot", "sonderangebot"),
        "purchase": ("kauf", "gekauft", "kaufen", "gekaufte meilen"),
        "saf": ("saf", "nachhaltig", "nachhaltiger flugkraftstoff", "saf beitrag"),
        "firstFlight": ("erster flug", "willkommen", "willkommensbonus", "neues mitglied"),
    },
)

ES = LocalePatterns(
    language=Language.ES,
    months={
        "ene": 1, "enero": 1, "feb": 2, "febrero": 2, "mar": 3, "marzo": 3,
        "abr": 4, "abril": 4, "may": 5, "mayo": 5, "jun": 6, "junio": 6, "jul": 7, "julio": 7,
        "ago": 8, "agosto": 8, "sep": 9, "set": 9, "septiembre": 9,
        "oct": 10, "octubre": 10, "nov": 11, "noviembre": 11, "dic": 12, "diciembre": 12,
    },
    month_names=(
        "Enero", "Febrero", "Marzo", "Abril", "Mayo", "Junio",
        "Julio", "Agosto", "Septiembre", "Octubre", "Noviembre", "Diciembre",
    ),
    detection_keywords=("mi viaje", "millas ganadas", "gastado", "primer vuelo", "transferencia"),
    month_hints=_hints(r"\bene\b|\babr\b|\bago\b|\bdic\b"),
    trip_header=re.compile(r"Mi\s+viaje", re.I),
    status_names=_statuses("explorador", "plata", "oro", "platino"),
    requalification=("recalificación", "recalificado", "renovado", "estado renovado"),
    balance_labels={
        "xp": ("saldo xp", "total xp", "xp actual", "puntos experiencia"),
        "uxp": ("saldo uxp", "ultimate xp"),
        "miles": ("saldo millas", "total millas", "millas disponibles"),
    },
    categories={
        "earned": ("ganado", "recibido", "acreditado", "obtenido"),
        "debit": ("gastado", "usado", "canjeado", "debitado"),
        "requalification": ("recalificación", "recalificado", "renovado", "estado renovado"),
        "flight": ("vuelo", "volar", "viaje"),
        "creditCard": ("tarjeta de crédito", "gastos tarjeta", "amex", "american express"),
        "hotel": ("hotel", "alojamiento", "accor", "all-accor", "estancia"),
        "subscription": ("suscripción", "flying blue+", "fb+", "membresía"),
        "transfer": ("transferencia", "transferido", "transferencia de puntos"),
        "promo": ("promo", "promoción", "bonus", "oferta", "oferta especial"),
        "purchase": ("compra", "comprado", "comprar", "millas compradas"),
        "saf": ("saf", "sostenible", "combustible aviación sostenible"),
        "firstFlight": ("primer vuelo", "bienvenido", "bono bienvenida", "nuevo miembro"),
    },
)

PT = LocalePatterns(
    language=Language.PT,
    months={
        "jan": 1, "janeiro": 1, "fev": 2, "fevereiro": 2, "mar": 3, "março": 3,
        "abr": 4, "abril": 4, "mai": 5, "maio": 5, "jun": 6, "junho": 6, "jul": 7, "julho": 7,
        "ago": 8, "agosto": 8, "set": 9, "setembro": 9,
        "out": 10, "outubro": 10, "nov": 11, "novembro": 11, "dez": 12, "dezembro": 12,
    },
    month_names=(
        "Janeiro", "Fevereiro", "Março", "Abril", "Maio", "Junho",
        "Julho", "Agosto", "Setembro", "Outubro", "Novembro", "Dezembro",
    ),
    detection_keywords=("minha viagem", "milhas ganhas", "gasto", "primeiro voo", "transferência"),
    month_hints=_hints(r"\bout\b", r"\bsetembro\b|\bnovembro\b"),
    trip_header=re.compile(r"Minha\s+viagem", re.I),
    status_names=_statuses("explorador", "prata", "ouro", "platina"),
    requalification=("requalificação", "requalificado", "renovado", "status renovado"),
    balance_labels={
        "xp": ("saldo xp", "total xp", "xp atual", "pontos experiência"),
        "uxp": ("saldo uxp", "ultimate xp"),
        "miles": ("saldo milhas", "total milhas", "milhas disponíveis"),
    },
    categories={
        "earned": ("ganhos", "recebido", "creditado", "obtido"),
        "debit": ("gasto", "usado", "resgatado", "debitado"),
        "requalification": ("requalificação", "requalificado", "renovado", "status renovado"),
        "flight": ("voo", "voar", "viagem"),
        "creditCard": ("cartão de crédito", "gastos cartão", "amex", "american express"),
        "hotel": ("hotel", "hospedagem", "accor", "all-accor", "estadia"),
        "subscription": ("assinatura", "flying blue+", "fb+", "associação"),
        "transfer": ("transferência", "transferido", "transferência de pontos"),
        "promo": ("promo", "promoção", "bônus", "oferta", "oferta especial"),
        "purchase": ("compra", "comprado", "comprar", "milhas compradas"),
        "saf": ("saf", "sustentável", "combustível aviação sustentável"),
        "firstFlight": ("primeiro voo", "bem-vindo", "bônus boas-vindas", "novo membro"),
    },
)

IT = LocalePatterns(
    language=Language.IT,
    months={
        "gen": 1, "gennaio": 1, "feb": 2, "febbraio": 2, "mar": 3, "marzo": 3,
        "apr": 4, "aprile": 4, "mag": 5, "maggio": 5, "giu": 6, "giugno": 6,
        "lug": 7, "luglio": 7, "ago": 8, "agosto": 8, "set": 9, "settembre": 9,
        "ott": 10, "ottobre": 10, "nov": 11, "novembre": 11, "dic": 12, "dicembre": 12,
    },
    month_names=(
        "Gennaio", "Febbraio", "Marzo", "Aprile", "Maggio", "Giugno",
        "Luglio", "Agosto", "Settembre", "Ottobre", "Novembre", "Dicembre",
    ),
    detection_keywords=("mio viaggio", "miglia guadagnate", "speso", "primo volo", "trasferimento"),
    month_hints=_hints(r"\bgen\b|\bmag\b|\bgiu\b|\blug\b|\bott\b"),
    trip_header=re.compile(r"Mio\s+viaggio", re.I),
    status_names=_statuses("esploratore", "argento", "oro", "platino"),
    requalification=("riqualificazione", "riqualificato", "rinnovato", "stato rinnovato"),
    balance_labels={
        "xp": ("saldo xp", "totale xp", "xp attuale", "punti esperienza"),
        "uxp": ("saldo uxp", "ultimate xp"),
        "miles": ("saldo miglia", "totale miglia", "miglia disponibili"),
    },
    categories={
        "earned": ("guadagnati", "ricevuto", "accreditato", "ottenuto"),
        "debit": ("speso", "usato", "riscattato", "addebitato"),
        "requalification": ("riqualificazione", "riqualificato", "rinnovato", "stato rinnovato"),
        "flight": ("volo", "volare", "viaggio"),
        "creditCard": ("carta di credito", "spese carta", "amex", "american express"),
        "hotel": ("hotel", "alloggio", "accor", "all-accor", "soggiorno"),
        "subscription": ("abbonamento", "flying blue+", "fb+", "iscrizione"),
        "transfer": ("trasferimento", "trasferito", "trasferimento punti"),
        "promo": ("promo", "promozione", "bonus", "offerta", "offerta speciale"),
        "purchase": ("acquisto", "acquistato", "acquistare", "miglia acquistate"),
        "saf": ("saf", "sostenibile", "carburante aviazione sostenibile"),
        "firstFlight": ("primo volo", "benvenuto", "bonus benvenuto", "nuovo membro"),
    },
)

LOCALES: dict[Language, LocalePatterns] = {
    locale.language: locale for locale in (EN, NL, FR, DE, ES, PT, IT)
}

# Any language's trip header; statements mix English boilerplate into localized text.
ANY_TRIP_HEADER = re.compile(
    "|".join(locale.trip_header.pattern for locale in LOCALES.values()), re.I
)


def get_locale(language: Language | str | None) -> LocalePatterns:
    if language is None:
        return EN
    try:
        return LOCALES[Language(language)]
    except ValueError:
        return EN


def month_name(month: int, language: Language | str | None = None) -> str:
    if not 1 <= month <= 12:
        return ""
    return get_locale(language).month_names[month - 1]


def detect_transaction_category(
    text: str, language: Language | None = None
) -> TransactionCategory | None:
    """First category (in declaration order) whose keyword occurs in ``text``."""
    lowered = text.lower()
    locales = [LOCALES[language]] if language else list(LOCALES.values())
    for category in EN.categories:
        for locale in locales:
            if any(keyword in lowered for keyword in locale.categories[category]):
                return category
    return None
