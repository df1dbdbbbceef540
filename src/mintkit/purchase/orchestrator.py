from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable

from ..domain import TransactionConfirmation
from ..errors import InvalidInputError, StepExecutionFailedError
from ..providers.fallback import execute_with_provider_fallback
from .models import Order, PreparedPurchase, PurchaseObserver, Receipt, TransactionStep

if TYPE_CHECKING:
    from ..accounts.base import SigningAccount
    from ..context import ClientContext

logger = logging.getLogger(__name__)

_NO_OBSERVER = PurchaseObserver()


async def _account_chain_id(account: SigningAccount) -> int:
    return await account.get_chain_id()


async def _switch_account(account: SigningAccount, network_id: int) -> bool:
    return await account.switch_network(network_id)


class PurchaseOrchestrator:
    """Executes prepared steps with a signing account.

    ``execute_step`` runs one step (explicit mode); ``purchase`` runs every
    step of a prepared purchase in order and stops at the first failure
    (automatic mode). Neither keeps state between calls, so a failed step can
    be retried with ``execute_step``.
    """

    def __init__(self, context: ClientContext):
        self.context = context

    def _confirmation_depth(self, confirmations: int | None) -> int:
        if confirmations is None:
            return self.context.settings.confirmations
        if confirmations < 1:
            raise InvalidInputError(
                f"Confirmations must be at least 1, got {confirmations}",
                details={"confirmations": confirmations},
            )
        return confirmations

    def _notify(self, hook: Callable[..., Any], *args: Any) -> None:
        try:
            hook(*args)
        except Exception:
            logger.exception("Purchase observer hook %s failed", hook.__name__)

    async def execute_step(
        self,
        step: TransactionStep,
        account: SigningAccount,
        observer: PurchaseObserver | None = None,
        confirmations: int | None = None,
    ) -> Receipt:
        """Submit one step and wait for it to confirm.

        The signer is first checked (and, if it supports it, switched) onto the
        step's network.

        Raises:
            InvalidInputError: If ``confirmations`` is below 1
            StepExecutionFailedError: Wrapping whatever made the step fail
        """
        observer = observer or _NO_OBSERVER
        depth = self._confirmation_depth(confirmations)

        async def submit(signer: SigningAccount) -> tuple[str, TransactionConfirmation]:
            request = await step.build_request(signer)
            tx_hash = await signer.send_transaction(request)
            self._notify(observer.on_step_submitted, step, tx_hash)
            logger.info("Step '%s' submitted: %s", step.id, tx_hash)
            return tx_hash, await signer.wait_for_confirmation(tx_hash, depth)

        self._notify(observer.on_step_started, step)
        try:
            tx_hash, confirmation = await execute_with_provider_fallback(
                network_id=step.network_id,
                providers=[account],
                get_chain_id=_account_chain_id,
                operation=submit,
                switch_network=_switch_account,
            )
        except Exception as e:
            logger.error("Step '%s' failed: %s", step.id, e)
            self._notify(observer.on_step_failed, step, e)
            raise StepExecutionFailedError(step, e) from e

        receipt = Receipt(
            step_id=step.id,
            step_name=step.name,
            network_id=step.network_id,
            tx_hash=tx_hash,
            confirmations=confirmation.confirmations,
            block_number=confirmation.block_number,
            gas_used=confirmation.gas_used,
        )
        self._notify(observer.on_step_confirmed, step, receipt)
        logger.info(
            "Step '%s' confirmed in block %s", step.id, confirmation.block_number
        )
        return receipt

    async def purchase(
        self,
        account: SigningAccount,
        prepared: PreparedPurchase,
        observer: PurchaseObserver | None = None,
        confirmations: int | None = None,
    ) -> Order:
        """Execute every step of ``prepared`` in order.

        Raises:
            StepExecutionFailedError: At the first failing step, carrying the
                receipts of the steps that completed and the partial order.
                Later steps are not attempted.
        """
        self._confirmation_depth(confirmations)
        receipts: list[Receipt] = []
        for step in prepared.steps:
            try:
                receipt = await self.execute_step(step, account, observer, confirmations)
            except StepExecutionFailedError as e:
                order = Order(steps=prepared.steps, receipts=tuple(receipts))
                raise e.with_progress(list(receipts), order) from e.cause
            receipts.append(receipt)

        order = Order(steps=prepared.steps, receipts=tuple(receipts))
        logger.info(
            "Purchase completed: %d step(s), %s", len(receipts), ", ".join(order.tx_hashes)
        )
        return order
