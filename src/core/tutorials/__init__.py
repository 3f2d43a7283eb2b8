"""Tutorial flows run against the platform."""

from src.core.tutorials.base import TutorialBase
from src.core.tutorials.bitemporal import BitemporalResult, BitemporalTutorial
from src.core.tutorials.corporate_actions import CorporateActionsTutorial, NameChangeResult
from src.core.tutorials.cut_labels import CutLabelsTutorial
from src.core.tutorials.demo_instrument import DemoInstrumentBase, LifecycleResult
from src.core.tutorials.holdings import HoldingsTutorial
from src.core.tutorials.instrument_demos import (
    BondDemo,
    CfdDemo,
    EquityDemo,
    EquityOptionDemo,
    ExoticDemo,
    ForwardRateAgreementDemo,
    FutureDemo,
    FxForwardDemo,
    FxOptionDemo,
    SimpleInstrumentDemo,
    TermDepositDemo,
)
from src.core.tutorials.instrument_loader import InstrumentLoader
from src.core.tutorials.instrument_master import InstrumentMasterTutorial
from src.core.tutorials.market_data_rules import MarketDataRulesResult, MarketDataRulesTutorial
from src.core.tutorials.portfolio_cash_flows import BookedCashFlows, PortfolioCashFlowsTutorial
from src.core.tutorials.portfolios import PortfoliosTutorial
from src.core.tutorials.quotes import QuotesTutorial
from src.core.tutorials.schema import SchemaTutorial
from src.core.tutorials.transactions import TransactionsTutorial
from src.core.tutorials.valuation import ValuationTutorial

__all__ = [
    "TutorialBase",
    "InstrumentLoader",
    "DemoInstrumentBase",
    "LifecycleResult",
    "BondDemo",
    "CfdDemo",
    "EquityDemo",
    "EquityOptionDemo",
    "ExoticDemo",
    "ForwardRateAgreementDemo",
    "FutureDemo",
    "FxForwardDemo",
    "FxOptionDemo",
    "SimpleInstrumentDemo",
    "TermDepositDemo",
    "BitemporalResult",
    "BitemporalTutorial",
    "CorporateActionsTutorial",
    "NameChangeResult",
    "CutLabelsTutorial",
    "HoldingsTutorial",
    "InstrumentMasterTutorial",
    "MarketDataRulesResult",
    "MarketDataRulesTutorial",
    "BookedCashFlows",
    "PortfolioCashFlowsTutorial",
    "PortfoliosTutorial",
    "QuotesTutorial",
    "SchemaTutorial",
    "TransactionsTutorial",
    "ValuationTutorial",
]
