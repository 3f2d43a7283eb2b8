from typing import Dict, List, Optional

from src.core.instruments import ExoticInstrument, InstrumentDefinitionFormat
from src.core.models import (
    GetInstrumentsResponse,
    Instrument,
    InstrumentDefinition,
    InstrumentIdTypeDescriptor,
    InstrumentIdValue,
    Property,
    PropertyValue,
    UpsertInstrumentPropertyRequest,
    UpsertInstrumentsResponse,
)
from src.core.test_data import TUTORIAL_SCOPE
from src.core.tutorials.base import TutorialBase
from src.core.tutorials.setup import ensure_property_definition

FIGI_SCHEME = "Figi"
CLIENT_INTERNAL_SCHEME = "ClientInternal"
ISIN_SCHEME = "Isin"
SEDOL_SCHEME = "Sedol"

ISIN_PROPERTY_KEY = "Instrument/default/Isin"
SEDOL_PROPERTY_KEY = "Instrument/default/Sedol"

CUSTOM_SECTOR_CODE = "CustomSector"

# (name, figi, client internal id, isin, sedol)
INSTRUMENT_MASTER = [
    ("VODAFONE GROUP PLC", "BBG000C6K6G9", "INTERNAL_ID_1", "GB00BH4HKS39", "BH4HKS3"),
    ("BARCLAYS PLC", "BBG000C04D57", "INTERNAL_ID_2", "GB0031348658", "3134865"),
    ("NATIONAL GRID PLC", "BBG000FV67Q4", "INTERNAL_ID_3", "GB00BDR05C01", "BDR05C0"),
    ("SAINSBURY (J) PLC", "BBG000BF0KW3", "INTERNAL_ID_4", "GB00B019KW72", "B019KW7"),
    ("TAYLOR WIMPEY PLC", "BBG000BF4KL1", "INTERNAL_ID_5", "GB0008782301", "0878230"),
]


def custom_sector_key(scope: str = TUTORIAL_SCOPE) -> str:
    return f"Instrument/{scope}/{CUSTOM_SECTOR_CODE}"


class InstrumentMasterTutorial(TutorialBase):
    """Seeds an instrument master keyed under several identifier schemes and queries it."""

    def set_up(self) -> UpsertInstrumentsResponse:
        ensure_property_definition(
            self.property_definitions_api, "Instrument", TUTORIAL_SCOPE, CUSTOM_SECTOR_CODE
        )
        return self.seed_instrument_master()

    def seed_instrument_master(self) -> UpsertInstrumentsResponse:
        definitions: Dict[str, InstrumentDefinition] = {}
        for index, (name, figi, internal_id, isin, sedol) in enumerate(INSTRUMENT_MASTER, start=1):
            definitions[f"correlationId{index}"] = InstrumentDefinition(
                name=name,
                identifiers={
                    FIGI_SCHEME: InstrumentIdValue(value=figi),
                    CLIENT_INTERNAL_SCHEME: InstrumentIdValue(value=internal_id),
                    ISIN_SCHEME: InstrumentIdValue(value=isin),
                    SEDOL_SCHEME: InstrumentIdValue(value=sedol),
                },
            )
        response = self.instruments_api.upsert_instruments(definitions)
        if len(response.values) != len(definitions):
            raise AssertionError(
                f"expected {len(definitions)} seeded instruments, got {len(response.values)}"
            )
        return response

    def lookup_instrument_by_unique_id(self, figi: str = "BBG000C6K6G9") -> Instrument:
        """Look up by FIGI, returning the ISIN and SEDOL aliases as properties sorted by key."""
        response = self.instruments_api.get_instruments(
            FIGI_SCHEME, [figi], property_keys=[ISIN_PROPERTY_KEY, SEDOL_PROPERTY_KEY]
        )
        instrument = response.values.get(figi)
        if instrument is None:
            raise AssertionError(f"instrument {figi} missing from lookup response")
        return instrument.model_copy(
            update={"properties": sorted(instrument.properties, key=lambda prop: prop.key)}
        )

    def list_available_identifiers(self) -> List[InstrumentIdTypeDescriptor]:
        return self.instruments_api.get_instrument_identifier_types().values

    def list_all_instruments(self, page_size: int = 5) -> List[Instrument]:
        return self.instruments_api.list_instruments(limit=page_size).values

    def list_instruments_by_identifier_type(
        self, figis: Optional[List[str]] = None
    ) -> GetInstrumentsResponse:
        figis = figis or ["BBG000BF4KL1", "BBG000BF0KW3", "BBG000FV67Q4"]
        return self.instruments_api.get_instruments(FIGI_SCHEME, figis)

    def edit_instrument_property(
        self, figi: str = "BBG000BF4KL1", sector: str = "Construction"
    ) -> Instrument:
        property_key = custom_sector_key()
        self.instruments_api.upsert_instruments_properties(
            [
                UpsertInstrumentPropertyRequest(
                    identifier_type=FIGI_SCHEME,
                    identifier=figi,
                    properties=[
                        Property(key=property_key, value=PropertyValue(label_value=sector))
                    ],
                )
            ]
        )
        return self.instruments_api.get_instrument(
            FIGI_SCHEME, figi, property_keys=[property_key]
        )

    def create_custom_instrument(self) -> UpsertInstrumentsResponse:
        definition = InstrumentDefinition(
            name="10mm 5Y Fixed",
            identifiers={CLIENT_INTERNAL_SCHEME: InstrumentIdValue(value="SW-1")},
            definition=ExoticInstrument(
                instrument_format=InstrumentDefinitionFormat(
                    source_system="CustomSource", vendor="CustomFormat", version="0.1.2"
                ),
                content="<customFormat>upload in custom xml or JSON format</customFormat>",
            ),
        )
        return self.instruments_api.upsert_instruments({"correlationId": definition})
