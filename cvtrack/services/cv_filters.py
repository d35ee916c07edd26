"""
Attachment pre-filter.

Decides, from e-mail metadata alone, whether a PDF attachment is worth
downloading. The filter is permissive: anything not blacklisted passes, and
the AI classifier makes the real call later. The numeric score only exists so
callers can apply a minimum threshold.
"""
import re
from datetime import date, datetime
from typing import Optional, Union

from cvtrack.schemas.sync import CVCandidateScore

# Multi-language keywords for CV detection (EN, PL, DE)
CV_KEYWORDS = {
    "filename": [
        "cv",
        "resume",
        "curriculum",
        "zyciorys",
        "życiorys",
        "aplikacja",
        "application",
        "lebenslauf",
        "bewerbung",
        "candidate",
        "kandydat",
    ],
    "subject": [
        "cv",
        "resume",
        "aplikacja",
        "rekrutacja",
        "stanowisko",
        "oferta pracy",
        "application",
        "job",
        "position",
        "vacancy",
        "career",
        "lebenslauf",
        "bewerbung",
        "stelle",
        "kandidatur",
    ],
    "body": [
        "w załączeniu cv",
        "w załączniku cv",
        "załączam cv",
        "moje cv",
        "aplikuję na stanowisko",
        "zainteresowany ofertą",
        "aplikacja na",
        "attached resume",
        "my resume",
        "my cv",
        "applying for",
        "interested in the position",
        "job application",
        "i am applying",
        "bewerbung für",
        "meine bewerbung",
    ],
}

# Obvious non-CV mail; any hit rejects the attachment outright
BLACKLIST = {
    "senders": [
        "noreply@",
        "no-reply@",
        "invoice@",
        "billing@",
        "finance@",
        "newsletter@",
        "marketing@",
        "notifications@",
        "support@",
        "automated@",
        "donotreply@",
    ],
    "filenames": [
        "invoice",
        "faktura",
        "rachunek",
        "bill",
        "receipt",
        "paragon",
        "report",
        "raport",
        "contract",
        "umowa",
        "agreement",
        "statement",
        "wyciąg",
        "ticket",
        "bilet",
        "confirmation",
        "potwierdzenie",
        "order",
        "zamówienie",
    ],
    "subjects": [
        "invoice",
        "faktura",
        "payment",
        "płatność",
        "receipt",
        "paragon",
        "newsletter",
        "subscription",
        "notification",
        "reminder",
        "przypomnienie",
    ],
}

BASELINE_SCORE = 50
FILENAME_KEYWORD_SCORE = 100
SUBJECT_KEYWORD_SCORE = 80
NAME_PATTERN_SCORE = 70


_UPPER = "A-ZĆŁŃÓŚŹŻ"
_LOWER = "a-ząćęłńóśźż"
# "Jan Kowalski", "Jan_Kowalski", "Jan-Kowalski"
_NAME_PATTERN_EXACT = re.compile(rf"^[{_UPPER}][{_LOWER}]+[\s_-][{_UPPER}][{_LOWER}]+$")
# "Jan Kowalski CV", "Maria Anna Nowak Resume"
_NAME_PATTERN_PREFIX = re.compile(rf"^([{_UPPER}][{_LOWER}]+[\s_-]){{1,3}}[{_UPPER}][{_LOWER}]+")
_PDF_SUFFIX = re.compile(r"\.pdf$", re.IGNORECASE)


def matches_name_pattern(filename: str) -> bool:
    """True for capitalised person-name file names such as ``Jan_Kowalski.pdf``."""
    name = _PDF_SUFFIX.sub("", filename)
    return bool(_NAME_PATTERN_EXACT.match(name) or _NAME_PATTERN_PREFIX.match(name))


def _rejected(reason: str, verdict: str) -> CVCandidateScore:
    return CVCandidateScore(score=0, should_download=False, reasons=[reason, verdict])


def score_attachment(
    subject: str,
    sender: str,
    filename: str,
    email_body: str = "",
) -> CVCandidateScore:
    """Score an attachment as a CV candidate (0-100). Pure, no I/O."""
    subject_lower = (subject or "").lower()
    sender_lower = (sender or "").lower()
    filename_lower = (filename or "").lower()
    body_lower = (email_body or "").lower()

    for blacklisted in BLACKLIST["senders"]:
        if blacklisted in sender_lower:
            return _rejected(f"Blacklisted sender: {blacklisted}", "REJECTED - automated/system email")

    for blacklisted in BLACKLIST["filenames"]:
        if blacklisted in filename_lower:
            return _rejected(f"Blacklisted filename: {blacklisted}", "REJECTED - not a CV (invoice/report/etc.)")

    for blacklisted in BLACKLIST["subjects"]:
        if blacklisted in subject_lower:
            return _rejected(f"Blacklisted subject: {blacklisted}", "REJECTED - not a CV (invoice/newsletter/etc.)")

    reasons = []
    score = BASELINE_SCORE
    strong_signal = False

    filename_hits = [kw for kw in CV_KEYWORDS["filename"] if kw in filename_lower]
    if filename_hits:
        score = FILENAME_KEYWORD_SCORE
        strong_signal = True
        reasons.append(f"STRONG: CV keyword in filename: {', '.join(filename_hits)}")

    subject_hits = [kw for kw in CV_KEYWORDS["subject"] if kw in subject_lower]
    if subject_hits:
        if not strong_signal:
            score = SUBJECT_KEYWORD_SCORE
            strong_signal = True
        reasons.append(f"CV keyword in subject: {', '.join(subject_hits)}")

    if matches_name_pattern(filename or ""):
        if not strong_signal:
            score = NAME_PATTERN_SCORE
        reasons.append('Filename matches name pattern (e.g. "Jan_Kowalski.pdf")')

    body_hits = [kw for kw in CV_KEYWORDS["body"] if kw in body_lower]
    if body_hits:
        reasons.append(f"CV phrase in e-mail body: {', '.join(body_hits)}")

    if strong_signal:
        reasons.append(f"Score: {score} - DOWNLOADING (strong CV signal)")
    else:
        reasons.append(f"Score: {score} - DOWNLOADING (no blacklist hit, AI will verify)")

    return CVCandidateScore(score=score, should_download=True, reasons=reasons)


def _format_query_date(value: Union[date, datetime]) -> str:
    return value.strftime("%Y/%m/%d")


def build_cv_search_query(after_date: Optional[Union[date, datetime]] = None) -> str:
    """
    Mailbox search query: PDF attachments whose filename or subject carries a
    CV keyword, optionally restricted to mail on or after ``after_date``.
    """
    filename_terms = " OR ".join(f"filename:{kw}" for kw in CV_KEYWORDS["filename"])
    subject_terms = " OR ".join(f'"{kw}"' for kw in CV_KEYWORDS["subject"])

    query = f"has:attachment filename:pdf ({filename_terms} OR subject:({subject_terms}))"
    if after_date:
        query = f"after:{_format_query_date(after_date)} {query}"
    return query
