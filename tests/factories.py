from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from src.core.tutorials.instrument_loader import EXAMPLE_EQUITIES
from tests.shared.stub_platform import RecordedCall, StubPlatform

EXAMPLE_LUIDS = [f"LUID_0000000{index}" for index in range(1, 6)]


def instrument_payload(
    luid: str,
    *,
    name: Optional[str] = None,
    identifiers: Optional[Dict[str, str]] = None,
    properties: Optional[List[Dict[str, Any]]] = None,
    definition: Optional[Dict[str, Any]] = None,
    as_at: str = "2024-01-02T03:04:05+00:00",
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "lusidInstrumentId": luid,
        "name": name or luid,
        "identifiers": identifiers or {},
        "properties": properties or [],
        "version": {"asAtDate": as_at},
        "state": "Active",
    }
    if definition is not None:
        payload["instrumentDefinition"] = definition
    return payload


def portfolio_payload(
    scope: str, code: str, *, links: Optional[Iterable[Dict[str, str]]] = None
) -> Dict[str, Any]:
    return {
        "id": {"scope": scope, "code": code},
        "type": "Transaction",
        "displayName": f"Portfolio-{code}",
        "baseCurrency": "GBP",
        "links": list(links or []),
    }


def holding_payload(
    instrument_uid: str,
    units: Any,
    *,
    cost: Any = 0,
    currency: str = "GBP",
    holding_type: str = "P",
    settled_units: Any = None,
) -> Dict[str, Any]:
    return {
        "instrumentUid": instrument_uid,
        "holdingType": holding_type,
        "units": units,
        "settledUnits": units if settled_units is None else settled_units,
        "cost": {"amount": cost, "currency": currency},
        "costPortfolioCcy": {"amount": cost, "currency": currency},
        "currency": currency,
    }


def transaction_payload(request_body: Dict[str, Any]) -> Dict[str, Any]:
    """Echo an upserted transaction request the way the platform lists it back."""
    payload = dict(request_body)
    payload.setdefault("properties", {})
    return payload


def resource_list(values: Sequence[Any]) -> Dict[str, Any]:
    return {"values": list(values)}


def aggregation_payload(rows: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
    return {"data": list(rows), "aggregationFailures": []}


def stub_example_equities(stub: StubPlatform, luids: Sequence[str] = EXAMPLE_LUIDS) -> None:
    """Upsert and lookup of the five example FIGI equities, resolving to `luids`."""
    by_figi = {
        figi: instrument_payload(luid, name=name, identifiers={"Figi": figi})
        for (figi, name), luid in zip(EXAMPLE_EQUITIES, luids)
    }

    def lookup(call: RecordedCall) -> Tuple[int, Dict[str, Any]]:
        return 200, {"values": {figi: by_figi[figi] for figi in call.body}, "failed": {}}

    stub.on("POST", "instruments", {"values": by_figi, "failed": {}})
    stub.on("POST", r"instruments/\$get", lookup)


def echo_created_portfolio(call: RecordedCall) -> Tuple[int, Dict[str, Any]]:
    scope = call.path.split("/")[1]
    return 201, portfolio_payload(scope, call.body["code"])


def stub_portfolio_creation(stub: StubPlatform) -> None:
    stub.on("POST", r"transactionportfolios/[^/]+", echo_created_portfolio)


def echo_upserted_quotes(call: RecordedCall) -> Tuple[int, Dict[str, Any]]:
    values = {
        key: {"quoteId": request["quoteId"], "metricValue": request["metricValue"]}
        for key, request in call.body.items()
    }
    return 200, {"values": values, "failed": {}}


def echo_upserted_keys(call: RecordedCall) -> Tuple[int, Dict[str, Any]]:
    return 200, {"values": {key: {} for key in call.body}, "failed": {}}


def echo_upserted_instruments(call: RecordedCall) -> Tuple[int, Dict[str, Any]]:
    values = {
        key: instrument_payload(f"LUID_{index:08d}", name=definition["name"])
        for index, (key, definition) in enumerate(call.body.items(), start=1)
    }
    return 200, {"values": values, "failed": {}}


def stub_valuation_backend(stub: StubPlatform) -> None:
    """Accepting responses for everything a single-instrument valuation flow writes."""
    stub_portfolio_creation(stub)
    stub.on("POST", "instruments", echo_upserted_instruments)
    stub.on("POST", r"transactionportfolios/[^/]+/[^/]+/transactions", {})
    stub.on("POST", r"quotes/[^/]+", echo_upserted_quotes)
    stub.on("POST", r"complexmarketdata/[^/]+", echo_upserted_keys)
    stub.on("POST", "recipes", {"value": {"scope": "stub", "code": "stub"}})
    stub.on("DELETE", r"(recipes|portfolios|instruments)/.+", {})


def route_families(stub: StubPlatform) -> List[str]:
    """Calls reduced to method and first path segment, dropping generated scopes and codes."""
    return [f"{call.method} {call.path.split('/')[0]}" for call in stub.calls]


class TransactionStore:
    """Transactions booked into stubbed portfolios, listed back and cancelled by id."""

    def __init__(self) -> None:
        self.by_portfolio: Dict[str, List[Dict[str, Any]]] = defaultdict(list)

    def register(self, stub: StubPlatform) -> None:
        route = r"transactionportfolios/[^/]+/[^/]+/transactions"
        stub.on("POST", route, self._upsert)
        stub.on("GET", route, self._list)
        stub.on("DELETE", route, self._cancel)

    @staticmethod
    def _portfolio(call: RecordedCall) -> str:
        return call.path.split("/")[2]

    def _upsert(self, call: RecordedCall) -> Tuple[int, Dict[str, Any]]:
        booked = self.by_portfolio[self._portfolio(call)]
        booked.extend(transaction_payload(transaction) for transaction in call.body)
        return 200, {"version": {"asAtDate": "2024-01-02T03:04:05+00:00"}}

    def _list(self, call: RecordedCall) -> Tuple[int, Dict[str, Any]]:
        return 200, resource_list(self.by_portfolio[self._portfolio(call)])

    def _cancel(self, call: RecordedCall) -> Tuple[int, Dict[str, Any]]:
        cancelled = set(call.query_values("transactionIds"))
        portfolio = self._portfolio(call)
        self.by_portfolio[portfolio] = [
            transaction
            for transaction in self.by_portfolio[portfolio]
            if transaction["transactionId"] not in cancelled
        ]
        return 200, {}
