"""Round-up tracking tests: initialization, incremental runs and the baseline"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from app.core.assets import NATIVE_SOL_MINT
from app.core.errors import (
    InvalidAddressError,
    InvalidInputError,
    NoTransactionHistoryError,
    NotInitializedError,
)
from app.models import RoundupRecord, TrackingRun, WalletTracking
from app.tests.factories import (
    OTHER_WALLET,
    UNPRICED_MINT,
    WALLET,
    native_tx,
    recent_ts,
    token_tx,
)


def count(db_session, model) -> int:
    return db_session.execute(select(func.count()).select_from(model)).scalar()


class TestInitializeWallet:
    """Baseline set on wallet connect"""

    @pytest.mark.asyncio
    async def test_new_wallet_gets_newest_transaction(self, tracker, transfer_source):
        transfer_source.transactions = [
            native_tx("sig-2", OTHER_WALLET, WALLET, 5_000_000),
            native_tx("sig-1", WALLET, OTHER_WALLET, 1_000_000),
        ]

        result = await tracker.initialize_wallet(WALLET)

        assert result.is_new_wallet is True
        assert result.last_tracked_tx == "sig-2"
        assert tracker.baselines.get(WALLET).last_tracked_tx == "sig-2"

    @pytest.mark.asyncio
    async def test_reinitialization_keeps_existing_baseline(self, tracker, transfer_source):
        transfer_source.transactions = [native_tx("sig-1", WALLET, OTHER_WALLET, 1_000)]
        await tracker.initialize_wallet(WALLET)

        transfer_source.transactions.insert(0, native_tx("sig-2", WALLET, OTHER_WALLET, 1_000))
        requests_before = len(transfer_source.page_requests)
        result = await tracker.initialize_wallet(WALLET)

        assert result.is_new_wallet is False
        assert result.last_tracked_tx == "sig-1"
        assert len(transfer_source.page_requests) == requests_before

    @pytest.mark.asyncio
    async def test_wallet_without_history(self, tracker, db_session):
        with pytest.raises(NoTransactionHistoryError) as exc_info:
            await tracker.initialize_wallet(WALLET)

        assert exc_info.value.status_code == 404
        assert exc_info.value.detail == "network=devnet"
        assert count(db_session, WalletTracking) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("address", ["", "short", "0OIl" * 11, "not-a-base58-address-with-44-characters!!!!"])
    async def test_invalid_address_is_rejected(self, tracker, transfer_source, address):
        with pytest.raises(InvalidAddressError):
            await tracker.initialize_wallet(address)
        assert transfer_source.page_requests == []


class TestTrackRoundups:
    """Incremental round-up accumulation"""

    @pytest.mark.asyncio
    async def test_end_to_end_scenario(self, tracker, transfer_source, db_session):
        t0 = native_tx("T0", WALLET, OTHER_WALLET, 2_000_000_000)
        transfer_source.transactions = [t0]
        await tracker.initialize_wallet(WALLET)

        transfer_source.transactions = [
            token_tx("T3", WALLET, OTHER_WALLET, 22.80),
            token_tx("T2", WALLET, OTHER_WALLET, 8.85),
            native_tx("T1", WALLET, OTHER_WALLET, 89_000_000),
            t0,
        ]
        result = await tracker.track_roundups(WALLET)

        assert result.processed == 3
        assert result.stored == 3
        assert result.skipped == 0
        assert result.total_roundup == Decimal("1.00")
        assert result.is_ready_for_investment is True
        assert result.new_baseline == "T3"
        assert result.mode == "incremental"

        by_tx = {r.transaction_id: r for r in tracker.ledger.list_for(WALLET)}
        assert set(by_tx) == {"T1", "T2", "T3"}
        assert by_tx["T1"].usd_value == Decimal("13.35")
        assert by_tx["T1"].round_up_value == Decimal("0.65")
        assert by_tx["T1"].token == "SOL"
        assert by_tx["T1"].price_source == "coingecko"
        assert by_tx["T1"].slot == 250_000_000
        assert by_tx["T1"].network_fee == Decimal("0.000005")
        assert by_tx["T3"].slot == 250_000_001
        assert by_tx["T2"].round_up_value == Decimal("0.15")
        assert by_tx["T3"].round_up_value == Decimal("0.20")
        assert by_tx["T3"].price_source == "stablecoin"

    @pytest.mark.asyncio
    async def test_transfers_before_baseline_are_never_recorded(self, tracker, transfer_source):
        transfer_source.transactions = [
            native_tx("old-2", WALLET, OTHER_WALLET, 10_000_000),
            native_tx("old-1", WALLET, OTHER_WALLET, 10_000_000),
        ]
        await tracker.initialize_wallet(WALLET)

        result = await tracker.track_roundups(WALLET)

        assert result.processed == 0
        assert result.new_baseline == "old-2"
        assert tracker.ledger.count_for(WALLET) == 0

    @pytest.mark.asyncio
    async def test_unpriceable_transfer_is_skipped_without_stalling(self, tracker, transfer_source):
        transfer_source.transactions = [native_tx("T0", OTHER_WALLET, WALLET, 1_000)]
        await tracker.initialize_wallet(WALLET)

        transfer_source.transactions = [
            token_tx("T3", WALLET, OTHER_WALLET, 3.10),
            token_tx("T2", WALLET, OTHER_WALLET, 1500, mint=UNPRICED_MINT),
            token_tx("T1", WALLET, OTHER_WALLET, 5.25),
        ] + transfer_source.transactions
        result = await tracker.track_roundups(WALLET)

        assert result.processed == 3
        assert result.stored == 2
        assert result.skipped == 1
        assert result.new_baseline == "T3"
        assert result.total_roundup == Decimal("1.65")

        # The skipped transfer is behind the baseline now
        again = await tracker.track_roundups(WALLET)
        assert again.processed == 0

    @pytest.mark.asyncio
    async def test_uninitialized_wallet_is_rejected_without_side_effects(self, tracker, transfer_source, db_session):
        transfer_source.transactions = [native_tx("T1", WALLET, OTHER_WALLET, 1_000_000)]

        with pytest.raises(NotInitializedError) as exc_info:
            await tracker.track_roundups(WALLET)

        assert exc_info.value.status_code == 409
        assert transfer_source.page_requests == []
        assert count(db_session, RoundupRecord) == 0
        assert count(db_session, TrackingRun) == 0
        assert count(db_session, WalletTracking) == 0

    @pytest.mark.asyncio
    async def test_baseline_only_moves_forward(self, tracker, transfer_source):
        transfer_source.transactions = [native_tx("T0", WALLET, OTHER_WALLET, 1_000_000)]
        await tracker.initialize_wallet(WALLET)

        transfer_source.transactions.insert(0, native_tx("T1", WALLET, OTHER_WALLET, 1_000_000))
        first = await tracker.track_roundups(WALLET)
        assert first.new_baseline == "T1"

        # Nothing new: the baseline stays put
        second = await tracker.track_roundups(WALLET)
        assert second.processed == 0
        assert second.new_baseline == "T1"

        transfer_source.transactions.insert(0, native_tx("T2", WALLET, OTHER_WALLET, 1_000_000))
        third = await tracker.track_roundups(WALLET)
        assert third.processed == 1
        assert third.new_baseline == "T2"
        assert tracker.ledger.count_for(WALLET) == 2

    @pytest.mark.asyncio
    async def test_reprocess_skips_recorded_transfers(self, tracker, transfer_source):
        transfer_source.transactions = [native_tx("T0", WALLET, OTHER_WALLET, 1_000_000)]
        await tracker.initialize_wallet(WALLET)
        transfer_source.transactions.insert(0, token_tx("T1", WALLET, OTHER_WALLET, 4.40))
        await tracker.track_roundups(WALLET)

        result = await tracker.track_roundups(WALLET, reprocess=True)

        assert result.mode == "historical"
        assert result.processed == 2
        assert result.stored == 1  # T0 predates the baseline but reprocess picks it up
        assert result.skipped == 1
        assert result.new_baseline == "T1"
        assert tracker.ledger.count_for(WALLET) == 2

    @pytest.mark.asyncio
    async def test_limit_caps_processed_transfers(self, tracker, transfer_source):
        transfer_source.transactions = [native_tx("T0", OTHER_WALLET, WALLET, 1_000)]
        await tracker.initialize_wallet(WALLET)
        transfer_source.transactions = [
            token_tx(f"T{i}", WALLET, OTHER_WALLET, 1.5) for i in range(5, 0, -1)
        ] + transfer_source.transactions

        result = await tracker.track_roundups(WALLET, limit=2)

        assert result.processed == 2
        assert result.new_baseline == "T5"

    @pytest.mark.asyncio
    async def test_non_positive_limit_is_rejected(self, tracker):
        with pytest.raises(InvalidInputError):
            await tracker.track_roundups(WALLET, limit=0)

    @pytest.mark.asyncio
    async def test_historical_transfer_priced_at_current_rate(self, tracker, transfer_source, price_oracle):
        transfer_source.transactions = [native_tx("T0", OTHER_WALLET, WALLET, 1_000)]
        await tracker.initialize_wallet(WALLET)
        transfer_source.transactions.insert(
            0, native_tx("T1", WALLET, OTHER_WALLET, 100_000_000, timestamp=recent_ts(86_400))
        )

        result = await tracker.track_roundups(WALLET)

        assert result.stored == 1
        assert tracker.ledger.list_for(WALLET)[0].usd_value == Decimal("15.00")
        assert price_oracle.lookups == [NATIVE_SOL_MINT]

    @pytest.mark.asyncio
    async def test_price_cache_shared_across_transfers(self, tracker, transfer_source, price_oracle):
        transfer_source.transactions = [native_tx("T0", OTHER_WALLET, WALLET, 1_000)]
        await tracker.initialize_wallet(WALLET)
        transfer_source.transactions = [
            native_tx("T2", WALLET, OTHER_WALLET, 10_000_000),
            native_tx("T1", WALLET, OTHER_WALLET, 20_000_000),
        ] + transfer_source.transactions

        await tracker.track_roundups(WALLET)

        assert price_oracle.lookups == [NATIVE_SOL_MINT]

    @pytest.mark.asyncio
    async def test_tracking_run_is_recorded(self, tracker, transfer_source, db_session):
        transfer_source.transactions = [native_tx("T0", OTHER_WALLET, WALLET, 1_000)]
        await tracker.initialize_wallet(WALLET)
        transfer_source.transactions.insert(0, token_tx("T1", WALLET, OTHER_WALLET, 2.25))

        await tracker.track_roundups(WALLET)

        run = db_session.execute(select(TrackingRun)).scalar_one()
        assert run.status == "success"
        assert run.mode == "incremental"
        assert (run.processed, run.stored, run.skipped) == (1, 1, 0)
        assert run.ended_at is not None

    @pytest.mark.asyncio
    async def test_concurrent_baseline_move_is_not_overwritten(self, tracker, transfer_source):
        transfer_source.transactions = [native_tx("T0", OTHER_WALLET, WALLET, 1_000)]
        await tracker.initialize_wallet(WALLET)
        transfer_source.transactions.insert(0, token_tx("T1", WALLET, OTHER_WALLET, 2.25))

        original_fetch = transfer_source.fetch_page

        async def racing_fetch(address, before=None):
            # Another run advances the baseline while this one is fetching
            tracker.baselines.set_baseline(WALLET, "T9")
            return await original_fetch(address, before)

        transfer_source.fetch_page = racing_fetch
        result = await tracker.track_roundups(WALLET)

        assert result.stored == 1
        assert result.new_baseline == "T9"
        assert tracker.baselines.get(WALLET).last_tracked_tx == "T9"


class TestReadSide:
    """Ledger reads exposed through the tracker"""

    @pytest.mark.asyncio
    async def test_get_roundups_summary(self, tracker, transfer_source):
        transfer_source.transactions = [native_tx("T0", OTHER_WALLET, WALLET, 1_000)]
        await tracker.initialize_wallet(WALLET)
        transfer_source.transactions = [
            token_tx("T2", WALLET, OTHER_WALLET, 0.60, timestamp=recent_ts(10)),
            token_tx("T1", WALLET, OTHER_WALLET, 0.70, timestamp=recent_ts(20)),
        ] + transfer_source.transactions
        await tracker.track_roundups(WALLET)

        summary = tracker.get_roundups(WALLET)

        assert summary["count"] == 2
        assert [r.transaction_id for r in summary["records"]] == ["T2", "T1"]
        assert summary["total_roundup"] == Decimal("0.70")
        assert summary["is_ready_for_investment"] is False
        assert tracker.get_total(WALLET) == Decimal("0.70")

    def test_unknown_wallet_total_is_zero(self, tracker):
        assert tracker.get_total(WALLET) == Decimal("0.00")

    def test_blank_address_is_rejected(self, tracker):
        with pytest.raises(InvalidInputError):
            tracker.get_total("   ")
