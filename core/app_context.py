from dataclasses import dataclass
from typing import Callable, Optional

from core.config_loader import AppConfig
from core.dispatch import AssignmentLedger
from core.matching import MatchEngine
from core.metrics import MetricsRecalculator
from core.settlement import EarningsService, PayoutBatchProcessor
from database.uow import dispatch_uow
from notification.service import OfferNotifier
from payments.gateway import HttpTransferGateway, TransferGateway
from pipeline.dispatch import DispatchFlow


@dataclass
class AppContext:
    """Application context container that holds all wired dependencies.

    Services hold no DB session; each operation opens its own unit of
    work through ``uow_factory``.
    """
    config: AppConfig
    match_engine: MatchEngine
    ledger: AssignmentLedger
    metrics: MetricsRecalculator
    payout_processor: PayoutBatchProcessor
    earnings: EarningsService
    dispatch_flow: DispatchFlow
    notifier: Optional[OfferNotifier] = None

    @classmethod
    def build(
        cls,
        config: AppConfig,
        uow_factory: Callable = dispatch_uow,
        gateway: Optional[TransferGateway] = None
    ) -> "AppContext":
        """Build an AppContext from config.

        Args:
            config: Loaded application configuration
            uow_factory: Unit-of-work factory shared by every service
            gateway: Transfer gateway override (defaults to the HTTP gateway)

        Returns:
            Fully wired AppContext instance
        """
        notifier = None
        if config.notifications.enabled:
            notifier = OfferNotifier(config.notifications)

        metrics = MetricsRecalculator(uow_factory=uow_factory)
        match_engine = MatchEngine(config.matching, uow_factory=uow_factory)
        ledger = AssignmentLedger(
            config.dispatch,
            uow_factory=uow_factory,
            notifier=notifier,
            metrics=metrics
        )

        if gateway is None:
            gateway = HttpTransferGateway.from_config(config.transfer_gateway)
        payout_processor = PayoutBatchProcessor(config.settlement, gateway, uow_factory=uow_factory)

        return cls(
            config=config,
            match_engine=match_engine,
            ledger=ledger,
            metrics=metrics,
            payout_processor=payout_processor,
            earnings=EarningsService(payout_processor, uow_factory=uow_factory),
            dispatch_flow=DispatchFlow(match_engine, ledger, config.matching.candidates_to_offer),
            notifier=notifier
        )
