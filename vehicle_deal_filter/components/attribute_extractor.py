"""
Attribute extraction for the Vehicle Deal Filter system.

This module parses the free text of a listing (title, subtitle and
description) into structured vehicle attributes: brand, model, fuel type,
manufacture year, mileage and numeric price. Every heuristic is driven by
vocabulary data held in ``ExtractionVocabulary`` so it can be swapped or
extended per locale.
"""

import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, FrozenSet, List, Optional, Tuple

from bs4 import BeautifulSoup

from ..interfaces import IAttributeExtractor
from ..models.config import ExtractionConfig
from ..models.listing import MIN_YEAR, ExtractedAttributes, FuelType, Listing

logger = logging.getLogger(__name__)


DEFAULT_BRAND_ALIASES: Dict[str, str] = {
    "vw": "volkswagen",
    "volkswagon": "volkswagen",
    "merc": "mercedes",
    "mercedes-benz": "mercedes",
    "mb": "mercedes",
    "bмw": "bmw",  # cyrillic "м"
    "škoda": "skoda",
    "citroën": "citroen",
    "peugot": "peugeot",
    "renualt": "renault",
    "hyundia": "hyundai",
    "toyta": "toyota",
    "chevy": "chevrolet",
    "alfa-romeo": "alfa",
}

DEFAULT_STOP_WORDS: FrozenSet[str] = frozenset({
    "klima",
    "super",
    "full",
    "opc",
    "line",
    "kupie",
    "sprzedam",
    "bezwypadkowy",
    "combo",
    "idealny",
    "nowy",
    "okazja",
    "zadbany",
    "pilne",
    "lpg",
    "diesel",
    "benzyna",
    "benzin",
    "petrol",
    "hybryda",
    "hybrid",
    "elektryczny",
    "electric",
    "tdi",
    "tsi",
    "tfsi",
    "fsi",
    "cdti",
    "hdi",
    "dci",
    "crdi",
    "tdci",
    "mpi",
    "phev",
})

# Evaluated in this order; the first category with a matching keyword wins.
FUEL_PRIORITY: Tuple[FuelType, ...] = (
    FuelType.ELECTRIC,
    FuelType.HYBRID,
    FuelType.DIESEL,
    FuelType.PETROL,
)

DEFAULT_FUEL_KEYWORDS: Dict[FuelType, Tuple[str, ...]] = {
    FuelType.DIESEL: (
        "diesel", "dci", "tdi", "cdti", "d", "d-4d", "d4d", "hdi", "bluehdi",
        "multijet", "crdi", "tdci", "jtd", "jtdm", "cdi", "ropa",
    ),
    FuelType.PETROL: (
        "benzyna", "benzin", "pb", "lpg", "mpi", "fsi", "tfsi", "tsi", "tce",
        "vvt-i", "ecoboost", "essence", "gasoline", "petrol",
    ),
    FuelType.HYBRID: ("hybrid", "hybryda", "phev", "hev", "plug-in"),
    FuelType.ELECTRIC: ("ev", "bev", "electric", "elektryczny", "elektryk", "e-tron"),
}

MAX_MODEL_TOKENS = 3

YEAR_RX = re.compile(r"\b(?:19|20)\d{2}\b")
MILEAGE_RX = re.compile(
    r"(?<![\w.,])(\d{1,3}(?:[ .]\d{3})+|\d+)\s*(?:km|tys|k)\b", re.IGNORECASE
)
PRICE_RX = re.compile(r"\d[\d.,]*")
SEPARATOR_RX = re.compile(r"[/|_]+")
PUNCTUATION_RX = re.compile(r"[^\w\s-]+")
NBSP_RX = re.compile(r"[\u00a0\u202f]")


@dataclass(frozen=True)
class ExtractionVocabulary:
    """Locale data driving the extraction heuristics."""

    brand_aliases: Dict[str, str]
    stop_words: FrozenSet[str]
    fuel_keywords: Dict[FuelType, Tuple[str, ...]]

    @classmethod
    def default(cls) -> "ExtractionVocabulary":
        return cls(
            brand_aliases=dict(DEFAULT_BRAND_ALIASES),
            stop_words=DEFAULT_STOP_WORDS,
            fuel_keywords=dict(DEFAULT_FUEL_KEYWORDS),
        )

    def extended(self, config: ExtractionConfig) -> "ExtractionVocabulary":
        """Return a copy with the configured aliases and keywords added."""
        aliases = dict(self.brand_aliases)
        aliases.update(
            {alias.lower(): brand.lower() for alias, brand in config.brand_aliases.items()}
        )

        fuel_keywords = dict(self.fuel_keywords)
        for fuel_name, words in config.fuel_keywords.items():
            fuel = FuelType(fuel_name)
            fuel_keywords[fuel] = fuel_keywords.get(fuel, ()) + tuple(
                word.lower() for word in words
            )

        return ExtractionVocabulary(
            brand_aliases=aliases,
            stop_words=self.stop_words | {word.lower() for word in config.stop_words},
            fuel_keywords=fuel_keywords,
        )


class AttributeExtractor(IAttributeExtractor):
    """Best-effort parser of vehicle attributes from listing text."""

    def __init__(
        self,
        vocabulary: Optional[ExtractionVocabulary] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize attribute extractor.

        Args:
            vocabulary: Aliases, stop words and fuel keywords to use
            clock: Callable returning the current time (bounds the year)
        """
        self.vocabulary = vocabulary or ExtractionVocabulary.default()
        self.clock = clock or datetime.now

        # Keywords may contain hyphens, so hyphens count as part of a word
        self.fuel_regexes: List[Tuple[FuelType, re.Pattern]] = [
            (fuel, self._keyword_regex(self.vocabulary.fuel_keywords.get(fuel, ())))
            for fuel in FUEL_PRIORITY
        ]

    @staticmethod
    def _keyword_regex(keywords) -> Optional[re.Pattern]:
        if not keywords:
            return None
        alternatives = "|".join(
            re.escape(word) for word in sorted(set(keywords), key=len, reverse=True)
        )
        return re.compile(rf"(?<![\w-])(?:{alternatives})(?![\w-])", re.IGNORECASE)

    def extract(self, listing: Listing) -> ExtractedAttributes:
        """
        Parse structured attributes out of a listing.

        Never raises: any attribute that cannot be parsed falls back to
        ``None`` (or ``FuelType.UNKNOWN`` / an empty string).

        Args:
            listing: Listing to analyse

        Returns:
            ExtractedAttributes for the listing
        """
        text = self._clean_text(
            " ".join(part for part in (listing.title, listing.subtitle, listing.description) if part)
        )
        title = self._clean_text(listing.title) or text

        brand, model = self._guard(lambda: self.brand_and_model(title), ("", ""))
        fuel = self._guard(lambda: self.detect_fuel(text), FuelType.UNKNOWN)
        year = self._guard(lambda: self.extract_year(text), None)
        mileage_km = self._guard(lambda: self.extract_mileage_km(text), None)
        price = self._guard(lambda: self.extract_price(listing.price_text), None)

        attrs = ExtractedAttributes(
            brand=brand,
            model=model,
            fuel=fuel,
            year=year,
            mileage_km=mileage_km,
            price_numeric=price,
        )
        logger.debug(f"Extracted attributes for '{listing.title}': {attrs}")
        return attrs

    def _guard(self, step: Callable, default):
        try:
            return step()
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Attribute extraction step failed, using default: {e}")
            return default

    def tokenize(self, text: str) -> List[str]:
        """Lower-case, strip punctuation except inner hyphens, split on whitespace."""
        text = SEPARATOR_RX.sub(" ", (text or "").lower())
        text = PUNCTUATION_RX.sub(" ", text)
        tokens = (token.strip("-") for token in text.split())
        return [token for token in tokens if token]

    def brand_and_model(self, title: str) -> Tuple[str, str]:
        """
        Derive brand and model from a listing title.

        The first token is the brand (resolved through the alias table); up
        to three following tokens that are neither stop words nor single
        characters form the model.
        """
        tokens = self.tokenize(title)
        if not tokens:
            return "", ""

        brand = self.vocabulary.brand_aliases.get(tokens[0], tokens[0])

        model_tokens: List[str] = []
        for token in tokens[1:]:
            if len(model_tokens) >= MAX_MODEL_TOKENS:
                break
            if token in self.vocabulary.stop_words or len(token) == 1:
                continue
            model_tokens.append(token)

        return brand, " ".join(model_tokens).strip()

    def detect_fuel(self, text: str) -> FuelType:
        """Return the highest-priority fuel category mentioned in ``text``."""
        for fuel, regex in self.fuel_regexes:
            if regex is not None and regex.search(text or ""):
                return fuel
        return FuelType.UNKNOWN

    def extract_year(self, text: str) -> Optional[int]:
        """Return the first 19xx/20xx token when it is a plausible model year."""
        match = YEAR_RX.search(text or "")
        if not match:
            return None

        year = int(match.group(0))
        if year < MIN_YEAR or year > self.clock().year + 1:
            return None
        return year

    def extract_mileage_km(self, text: str) -> Optional[int]:
        """
        Return the mileage in kilometres.

        Numbers below 1000 are read as thousands ("150 tys" is 150,000 km).
        """
        match = MILEAGE_RX.search(NBSP_RX.sub(" ", text or ""))
        if not match:
            return None

        value = int(re.sub(r"[ .]", "", match.group(1)))
        return value if value >= 1000 else value * 1000

    def extract_price(self, raw_price) -> Optional[float]:
        """
        Parse a numeric price from raw price text.

        Args:
            raw_price: Price text (or an already numeric price)

        Returns:
            Price as float, or None when no digits are present
        """
        if raw_price is None or isinstance(raw_price, bool):
            return None

        if isinstance(raw_price, (int, float)):
            return float(raw_price) if math.isfinite(raw_price) else None

        match = PRICE_RX.search(re.sub(r"\s", "", str(raw_price)))
        if not match:
            return None

        return self._parse_number(match.group(0))

    def _parse_number(self, run: str) -> Optional[float]:
        run = run.rstrip(".,")

        if "." in run and "," in run:
            normalized = run.replace(".", "").replace(",", ".")
        elif "." in run or "," in run:
            separator = "." if "." in run else ","
            # Either separator before 3-digit groups only marks thousands,
            # so "45,000" is 45000 and "4999,5" is 4999.5.
            head, *groups = run.split(separator)
            if all(len(group) == 3 for group in groups):
                normalized = head + "".join(groups)
            elif len(groups) == 1:
                normalized = f"{head}.{groups[0]}"
            else:
                return None
        else:
            normalized = run

        try:
            return float(normalized)
        except ValueError:
            return None

    def _clean_text(self, text: Optional[str]) -> str:
        """Strip HTML markup and normalise whitespace."""
        if not text:
            return ""

        # Only use BeautifulSoup if text actually contains HTML tags
        if "<" in text and ">" in text:
            text = BeautifulSoup(text, "html.parser").get_text(" ")

        return re.sub(r"\s+", " ", NBSP_RX.sub(" ", text)).strip()


_default_extractor: Optional[AttributeExtractor] = None


def _extractor() -> AttributeExtractor:
    global _default_extractor
    if _default_extractor is None:
        _default_extractor = AttributeExtractor()
    return _default_extractor


def extract(listing: Listing) -> ExtractedAttributes:
    """Extract attributes with the default vocabulary."""
    return _extractor().extract(listing)


def detect_fuel(text: str) -> FuelType:
    return _extractor().detect_fuel(text)


def extract_year(text: str) -> Optional[int]:
    return _extractor().extract_year(text)


def extract_mileage_km(text: str) -> Optional[int]:
    return _extractor().extract_mileage_km(text)


def extract_price(raw_price) -> Optional[float]:
    return _extractor().extract_price(raw_price)
