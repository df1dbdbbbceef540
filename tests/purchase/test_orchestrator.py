from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from fakes import BASE, BUYER, EXTENSION, TOKEN
from mintkit.domain import TransactionRequest
from mintkit.errors import (
    ErrorCode,
    InsufficientFundsError,
    InvalidInputError,
    StepExecutionFailedError,
)
from mintkit.money import Money
from mintkit.purchase import (
    CostBreakdown,
    EligibilityResult,
    OrderStatus,
    PreparedPurchase,
    PurchaseObserver,
    PurchaseOrchestrator,
    StepKind,
    TransactionStep,
)


def make_step(step_id: str, kind: StepKind = StepKind.APPROVE, builder=None) -> TransactionStep:
    return TransactionStep(
        id=step_id,
        name=step_id.title(),
        kind=kind,
        network_id=BASE,
        transaction=TransactionRequest(
            to=TOKEN, data="0x01", chain_id=BASE, gas_limit=50_000
        ),
        builder=builder,
    )


def prepared(*steps: TransactionStep) -> PreparedPurchase:
    zero = Money.native(0, BASE)
    return PreparedPurchase(
        steps=steps,
        cost=CostBreakdown(product=zero, platform_fee=zero, total_native=zero),
        eligibility=EligibilityResult(True, None, None),
        network_id=BASE,
        buyer=BUYER,
        recipient=BUYER,
        quantity=1,
        prepared_at=datetime.now(timezone.utc),
    )


class RecordingObserver(PurchaseObserver):
    def __init__(self):
        self.events: list[tuple[str, str]] = []

    def on_step_started(self, step):
        self.events.append(("started", step.id))

    def on_step_submitted(self, step, tx_hash):
        self.events.append(("submitted", step.id))

    def on_step_confirmed(self, step, receipt):
        self.events.append(("confirmed", step.id))

    def on_step_failed(self, step, error):
        self.events.append(("failed", step.id))


@pytest.fixture
def orchestrator(context):
    return PurchaseOrchestrator(context)


@pytest.mark.asyncio
async def test_execute_step_returns_receipt(orchestrator, account):
    step = make_step("mint", StepKind.PURCHASE)

    receipt = await orchestrator.execute_step(step, account)

    assert receipt.step_id == "mint"
    assert receipt.tx_hash == "0x" + f"{1:064x}"
    assert receipt.confirmations == 1
    assert receipt.network_id == BASE
    assert account.sent == [step.transaction]


@pytest.mark.asyncio
async def test_execute_step_uses_builder_request(orchestrator, account):
    built = TransactionRequest(to=EXTENSION, data="0x02", chain_id=BASE, value=9)
    step = make_step("mint", StepKind.PURCHASE, builder=AsyncMock(return_value=built))

    await orchestrator.execute_step(step, account)

    assert account.sent == [built]
    step.builder.assert_awaited_once_with(account)


@pytest.mark.asyncio
async def test_execute_step_honours_requested_confirmations(orchestrator, account):
    receipt = await orchestrator.execute_step(make_step("a"), account, confirmations=3)
    assert receipt.confirmations == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("confirmations", [0, -1])
async def test_confirmations_below_one_are_rejected(orchestrator, account, confirmations):
    with pytest.raises(InvalidInputError):
        await orchestrator.execute_step(make_step("a"), account, confirmations=confirmations)
    with pytest.raises(InvalidInputError):
        await orchestrator.purchase(
            account, prepared(make_step("a")), confirmations=confirmations
        )

    assert account.sent == []


@pytest.mark.asyncio
async def test_execute_step_wraps_failures(orchestrator, account):
    account.fail_on[0] = RuntimeError("user rejected")
    step = make_step("approve-usdc")

    with pytest.raises(StepExecutionFailedError) as exc:
        await orchestrator.execute_step(step, account)

    assert exc.value.step is step
    assert isinstance(exc.value.cause, RuntimeError)
    assert exc.value.cause_code is ErrorCode.UNKNOWN_ERROR
    assert "approve-usdc" in str(exc.value)


@pytest.mark.asyncio
async def test_builder_failure_keeps_typed_cause(orchestrator, account):
    builder = AsyncMock(side_effect=InsufficientFundsError("Insufficient ETH balance"))
    step = make_step("mint", StepKind.PURCHASE, builder=builder)

    with pytest.raises(StepExecutionFailedError) as exc:
        await orchestrator.execute_step(step, account)

    assert exc.value.cause_code is ErrorCode.INSUFFICIENT_FUNDS
    assert account.sent == []


@pytest.mark.asyncio
async def test_signer_on_wrong_network_fails_step(orchestrator, account):
    account.chain_id = 1

    with pytest.raises(StepExecutionFailedError) as exc:
        await orchestrator.execute_step(make_step("a"), account)

    assert exc.value.cause_code is ErrorCode.UNSUPPORTED_NETWORK
    assert account.sent == []


@pytest.mark.asyncio
async def test_signer_is_switched_when_supported(orchestrator, account):
    account.chain_id = 1
    account.can_switch = True

    await orchestrator.execute_step(make_step("a"), account)

    assert account.chain_id == BASE
    assert len(account.sent) == 1


@pytest.mark.asyncio
async def test_purchase_runs_steps_in_order(orchestrator, account):
    observer = RecordingObserver()
    steps = (make_step("approve-usdc"), make_step("mint", StepKind.PURCHASE))

    order = await orchestrator.purchase(account, prepared(*steps), observer)

    assert order.status is OrderStatus.COMPLETED
    assert [r.step_id for r in order.receipts] == ["approve-usdc", "mint"]
    assert len(order.tx_hashes) == 2
    assert observer.events == [
        ("started", "approve-usdc"),
        ("submitted", "approve-usdc"),
        ("confirmed", "approve-usdc"),
        ("started", "mint"),
        ("submitted", "mint"),
        ("confirmed", "mint"),
    ]


@pytest.mark.asyncio
async def test_purchase_stops_at_first_failure(orchestrator, account):
    observer = RecordingObserver()
    account.fail_on[1] = RuntimeError("nonce too low")
    third = make_step("mint", StepKind.PURCHASE, builder=AsyncMock())
    steps = (make_step("approve-usdc"), make_step("approve-weth"), third)

    with pytest.raises(StepExecutionFailedError) as exc:
        await orchestrator.purchase(account, prepared(*steps), observer)

    error = exc.value
    assert error.step.id == "approve-weth"
    assert [r.step_id for r in error.receipts] == ["approve-usdc"]
    assert error.order.status is OrderStatus.PARTIAL
    assert isinstance(error.__cause__, RuntimeError)
    third.builder.assert_not_awaited()
    assert len(account.sent) == 2
    assert observer.events[-1] == ("failed", "approve-weth")


@pytest.mark.asyncio
async def test_failing_observer_does_not_break_execution(orchestrator, account):
    class CrashingObserver(RecordingObserver):
        def on_step_started(self, step):
            raise RuntimeError("display crashed")

        def on_step_confirmed(self, step, receipt):
            raise RuntimeError("display crashed")

    observer = CrashingObserver()

    order = await orchestrator.purchase(
        account, prepared(make_step("mint", StepKind.PURCHASE)), observer
    )

    assert order.status is OrderStatus.COMPLETED
    assert observer.events == [("submitted", "mint")]


@pytest.mark.asyncio
async def test_failed_step_can_be_retried_explicitly(orchestrator, account):
    account.fail_on[0] = RuntimeError("temporary")
    step = make_step("mint", StepKind.PURCHASE)

    with pytest.raises(StepExecutionFailedError) as exc:
        await orchestrator.purchase(account, prepared(step), None)

    receipt = await orchestrator.execute_step(exc.value.step, account)
    assert receipt.step_id == "mint"
