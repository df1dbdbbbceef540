from mintkit.domain import TransactionRequest
from mintkit.errors import (
    ErrorCode,
    InvalidInputError,
    MintkitError,
    SoldOutError,
    StepExecutionFailedError,
)
from mintkit.purchase import Order, Receipt, StepKind, TransactionStep

STEP = TransactionStep(
    id="mint",
    name="Mint",
    kind=StepKind.PURCHASE,
    network_id=8453,
    transaction=TransactionRequest(to="0x" + "6" * 40, data="0x", chain_id=8453),
)


def test_error_to_dict():
    error = InvalidInputError("Invalid buyer", details={"buyer": "0x1"})

    assert isinstance(error, MintkitError)
    assert error.to_dict() == {
        "error": "Invalid buyer",
        "code": "INVALID_INPUT",
        "details": {"buyer": "0x1"},
    }


def test_step_failure_exposes_cause_code():
    error = StepExecutionFailedError(STEP, SoldOutError("Only 0 remaining"))

    assert error.code is ErrorCode.STEP_EXECUTION_FAILED
    assert error.cause_code is ErrorCode.SOLD_OUT
    assert str(error) == "Transaction failed at step 'mint': Only 0 remaining"
    assert error.receipts == []
    assert error.order is None


def test_with_progress_keeps_step_and_cause():
    cause = RuntimeError("boom")
    error = StepExecutionFailedError(STEP, cause)
    receipt = Receipt("approve-usdc", "Approve", 8453, "0xabc", 1)
    order = Order(steps=(STEP,), receipts=(receipt,))

    annotated = error.with_progress([receipt], order)

    assert annotated.step is STEP
    assert annotated.cause is cause
    assert annotated.receipts == [receipt]
    assert annotated.order is order
