from typing import List

from src.core.models import InstrumentDefinition, InstrumentIdValue
from src.infrastructure.platform import ApiFactory, InstrumentsApi

EXAMPLE_EQUITIES = [
    ("BBG000C6K6G9", "VODAFONE GROUP PLC"),
    ("BBG000C04D57", "BARCLAYS PLC"),
    ("BBG000FV67Q4", "NATIONAL GRID PLC"),
    ("BBG000BF0KW3", "SAINSBURY (J) PLC"),
    ("BBG000BF4KL1", "TAYLOR WIMPEY PLC"),
]


class InstrumentLoader:
    def __init__(self, api_factory: ApiFactory) -> None:
        if api_factory is None:
            raise ValueError("api_factory is required")
        self._api_factory = api_factory

    def load_instruments(self) -> List[str]:
        """Upsert the example FIGI equities and return their platform ids, sorted."""
        instruments_api = self._api_factory.api(InstrumentsApi)
        upsert_response = instruments_api.upsert_instruments(
            {
                figi: InstrumentDefinition(
                    name=name, identifiers={"Figi": InstrumentIdValue(value=figi)}
                )
                for figi, name in EXAMPLE_EQUITIES
            }
        )
        if upsert_response.failed:
            raise AssertionError(f"instrument upsert failures: {list(upsert_response.failed)}")

        ids = instruments_api.get_instruments("Figi", [figi for figi, _ in EXAMPLE_EQUITIES])
        return sorted(instrument.lusid_instrument_id for instrument in ids.values.values())
