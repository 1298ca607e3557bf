# dpfo/utils/exchange_rate_provider.py
import json
import logging
import os
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional

import requests

import dpfo.config as config

logger = logging.getLogger(__name__)

# Annual average reference rates (foreign currency units per 1 EUR)
DEFAULT_ECB_API_URL_TEMPLATE = "https://data-api.ecb.europa.eu/service/data/EXR/A.{currency_code}.EUR.SP00.A?startPeriod={year}&endPeriod={year}&format=jsondata"


class AnnualRateProvider:
    """
    Interface for annual average exchange rate sources.
    Rates are expressed the ECB way: units of foreign currency per 1 EUR.
    """
    def get_annual_rate(self, year: int, currency_code: str) -> Optional[Decimal]:
        raise NotImplementedError("Subclasses must implement get_annual_rate")


class ECBAnnualRateProvider(AnnualRateProvider):
    def __init__(self,
                 cache_file_path: str = config.ECB_RATES_CACHE_FILE_PATH,
                 api_url_template_override: Optional[str] = None,
                 request_timeout_seconds_override: Optional[int] = None):
        self.cache_file_path = cache_file_path
        self.api_url_template = api_url_template_override or DEFAULT_ECB_API_URL_TEMPLATE
        self.request_timeout_seconds = request_timeout_seconds_override or config.ECB_REQUEST_TIMEOUT_SECONDS

        self.rates_cache: Dict[str, Dict[str, Optional[str]]] = {} # Year -> {Currency Code -> Rate String or None for failure}
        self._load_cache()

    def _load_cache(self):
        if os.path.exists(self.cache_file_path):
            try:
                with open(self.cache_file_path, 'r', encoding='utf-8') as f:
                    self.rates_cache = json.load(f)
                logger.info(f"Loaded cached annual rates for {len(self.rates_cache)} year(s) from {self.cache_file_path}")
            except (OSError, json.JSONDecodeError) as e:
                logger.error(f"Error loading exchange rate cache from {self.cache_file_path}: {e}. Starting with an empty cache.")
                self.rates_cache = {}
        else:
            logger.info(f"Exchange rate cache file {self.cache_file_path} not found. Will create a new one if rates are fetched.")
            self.rates_cache = {}

    def _save_cache(self):
        cache_dir = os.path.dirname(self.cache_file_path)
        try:
            if cache_dir:
                os.makedirs(cache_dir, exist_ok=True)
            with open(self.cache_file_path, 'w', encoding='utf-8') as f:
                json.dump(self.rates_cache, f, indent=2, ensure_ascii=False)
            logger.debug(f"Saved exchange rate cache to {self.cache_file_path}")
        except OSError as e:
            logger.error(f"Error saving exchange rate cache to {self.cache_file_path}: {e}")

    def _fetch_rate_from_ecb(self, year: int, currency_code: str) -> Optional[Decimal]:
        url = self.api_url_template.format(currency_code=currency_code, year=year)
        logger.debug(f"Attempting ECB fetch of the {year} annual average for {currency_code} from URL: {url}")
        try:
            response = requests.get(url, timeout=self.request_timeout_seconds, headers={'Accept': 'application/json'})
            response.raise_for_status()
            if not response.content:
                logger.info(f"ECB API returned an empty response for {currency_code} in {year}.")
                return None

            data = response.json()
            series = data["dataSets"][0]["series"]
            if not series:
                logger.info(f"No series data in ECB response for {currency_code} in {year}.")
                return None
            observations = series[next(iter(series))].get("observations") or {}
            # One observation per year; key "0" is the first (and only) period requested
            observation = observations.get("0")
            if not observation:
                logger.info(f"No observation in ECB response for {currency_code} in {year}.")
                return None
            rate = Decimal(str(observation[0]))
            logger.info(f"ECB annual average fetched for {currency_code} in {year}: {rate}")
            return rate
        except requests.exceptions.HTTPError as http_err:
            logger.warning(f"HTTP error while fetching the {year} annual average for {currency_code}: {http_err}. URL: {url}")
        except requests.exceptions.RequestException as req_err:
            logger.error(f"Request error while fetching the {year} annual average for {currency_code}: {req_err}. URL: {url}")
        except (ValueError, KeyError, IndexError, TypeError, InvalidOperation) as parse_err:
            logger.error(f"Error parsing ECB API response for {currency_code} in {year}: {parse_err}")
        return None

    def get_annual_rate(self, year: int, currency_code: str) -> Optional[Decimal]:
        currency_code = currency_code.upper()
        if currency_code == "EUR":
            return Decimal("1")

        year_key = str(year)
        year_rates = self.rates_cache.setdefault(year_key, {})
        if currency_code in year_rates:
            cached = year_rates[currency_code]
            if cached is None:
                logger.debug(f"Annual rate for {currency_code} in {year} previously determined as unavailable.")
                return None
            try:
                return Decimal(cached)
            except InvalidOperation:
                logger.error(f"Invalid rate format '{cached}' in cache for {currency_code} in {year}. Refetching.")

        rate = self._fetch_rate_from_ecb(year, currency_code)
        year_rates[currency_code] = str(rate) if rate is not None else None
        self._save_cache()
        return rate
