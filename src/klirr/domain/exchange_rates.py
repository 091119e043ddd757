"""Historical exchange rates for converting line items."""

import json
import logging
import time
from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, Optional

import httpx

from klirr.domain.cancellation import CancellationToken
from klirr.domain.entities import ExchangeRates
from klirr.domain.errors import (
    FoundNoExchangeRate,
    InvalidRateResponse,
    NetworkError,
    no_exchange_rate,
)
from klirr.domain.money import Item

logger = logging.getLogger("klirr.exchange_rates")

FRANKFURTER_API = "https://api.frankfurter.dev/v1"
REQUEST_TIMEOUT = 10.0


class RateFetcher(ABC):
    """Source of the rate ``base -> target`` on a given date."""

    @abstractmethod
    def fetch_rate(self, on: date, base: str, target: str) -> Decimal:
        """Fetch one rate.

        Raises:
            NetworkError: Transient failure, worth retrying
            FoundNoExchangeRate: The pair is missing from the answer
            InvalidRateResponse: The answer is malformed
        """
        pass


class FrankfurterRateFetcher(RateFetcher):
    """Fetch rates from the Frankfurter historical FX API."""

    def __init__(
        self,
        base_url: str = FRANKFURTER_API,
        timeout: float = REQUEST_TIMEOUT,
        client: Optional[httpx.Client] = None,
    ):
        """Initialize the fetcher.

        Args:
            base_url: API root, without trailing slash
            timeout: Per-request timeout in seconds
            client: Optional preconfigured client; one is opened per
                request when omitted
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.client = client

    def url_for(self, on: date) -> str:
        return f"{self.base_url}/{on.isoformat()}"

    def fetch_rate(self, on: date, base: str, target: str) -> Decimal:
        logger.debug("Fetching %s/%s@%s rate", base, target, on)
        params = {"base": base, "symbols": target}
        try:
            if self.client is not None:
                resp = self.client.get(self.url_for(on), params=params, timeout=self.timeout)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    resp = client.get(self.url_for(on), params=params)
        except httpx.TransportError as e:
            raise NetworkError(f"Failed to fetch {base}->{target} rate for {on}: {e}")

        if resp.status_code >= 500:
            raise NetworkError(
                f"FX endpoint answered {resp.status_code} for {base}->{target} on {on}"
            )
        if resp.status_code != 200:
            raise InvalidRateResponse(
                f"FX endpoint answered {resp.status_code} for {base}->{target} on {on}: {resp.text[:200]}"
            )
        return parse_rate_response(resp.content, base=base, target=target, on=on)


def parse_rate_response(content: bytes, base: str, target: str, on: date) -> Decimal:
    """Extract ``rates[target]`` from a Frankfurter response body.

    Expected: ``{"date": "YYYY-MM-DD", "base": "BASE", "rates": {"TARGET": n}}``.
    """
    try:
        body = json.loads(content, parse_float=Decimal, parse_int=Decimal)
    except ValueError as e:
        raise InvalidRateResponse(f"FX response is not JSON: {e}")

    if not isinstance(body, dict):
        raise InvalidRateResponse("FX response is not a JSON object")
    if not isinstance(body.get("date"), str):
        raise InvalidRateResponse("FX response lacks a 'date' string")
    try:
        date.fromisoformat(body["date"])
    except ValueError:
        raise InvalidRateResponse(f"FX response has invalid date '{body['date']}'")
    if body.get("base") != base:
        raise InvalidRateResponse(f"FX response base {body.get('base')!r} does not match {base!r}")
    rates = body.get("rates")
    if not isinstance(rates, dict):
        raise InvalidRateResponse("FX response lacks a 'rates' object")
    if target not in rates:
        raise FoundNoExchangeRate(no_exchange_rate(base, target, on))
    rate = rates[target]
    if not isinstance(rate, Decimal) or not rate.is_finite() or rate <= 0:
        raise InvalidRateResponse(f"FX response has invalid rate {rate!r} for {target}")
    return rate


class RateCache:
    """Rates already fetched, keyed by (date, base, target)."""

    def __init__(self, entries: Optional[dict[tuple[date, str, str], Decimal]] = None):
        self._entries = dict(entries or {})
        self.dirty = False

    def get(self, on: date, base: str, target: str) -> Optional[Decimal]:
        return self._entries.get((on, base, target))

    def put(self, on: date, base: str, target: str, rate: Decimal) -> None:
        self._entries[(on, base, target)] = rate
        self.dirty = True

    def entries(self) -> dict[tuple[date, str, str], Decimal]:
        return dict(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


class FxRateResolver:
    """Resolve every rate needed to convert items into a target currency."""

    def __init__(
        self,
        fetcher: RateFetcher,
        cache: Optional[RateCache] = None,
        max_retries: int = 3,
        backoff_base: float = 0.25,
        backoff_cap: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
        cancellation: Optional[CancellationToken] = None,
    ):
        self.fetcher = fetcher
        self.cache = cache if cache is not None else RateCache()
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.backoff_cap = backoff_cap
        self.sleep = sleep
        self.cancellation = cancellation

    def backoff(self, attempt: int) -> float:
        """Delay before retry number ``attempt + 1``: 250 ms doubling, capped."""
        return min(self.backoff_base * (2 ** attempt), self.backoff_cap)

    def resolve(self, items: Iterable[Item], target: str) -> ExchangeRates:
        """Fetch one rate per distinct (period end date, currency) pair.

        Items already in ``target`` need no rate. Pairs are fetched in the
        order the items first mention them.
        """
        pairs: list[tuple[date, str]] = []
        for item in items:
            if item.currency == target:
                continue
            pair = (item.when.to_date_end_of_period(), item.currency)
            if pair not in pairs:
                pairs.append(pair)

        rates: dict[tuple[date, str], Decimal] = {}
        for on, currency in pairs:
            if self.cancellation is not None:
                self.cancellation.raise_if_cancelled(f"fetching {currency}->{target} rate")
            cached = self.cache.get(on, currency, target)
            if cached is not None:
                logger.debug("Using cached %s/%s@%s rate", currency, target, on)
                rates[(on, currency)] = cached
                continue
            rate = self._fetch_with_retry(on, currency, target)
            self.cache.put(on, currency, target, rate)
            rates[(on, currency)] = rate

        if pairs:
            logger.info("Resolved %d exchange rate(s) into %s", len(pairs), target)
        return ExchangeRates(target_currency=target, rates=rates)

    def _fetch_with_retry(self, on: date, base: str, target: str) -> Decimal:
        attempt = 0
        while True:
            try:
                return self.fetcher.fetch_rate(on, base, target)
            except NetworkError as e:
                if attempt >= self.max_retries:
                    raise
                delay = self.backoff(attempt)
                logger.warning(
                    "Fetching %s/%s@%s failed (%s), retrying in %.2fs", base, target, on, e, delay
                )
                self.sleep(delay)
                attempt += 1
