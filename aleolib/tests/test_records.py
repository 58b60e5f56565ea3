import pytest

from aleolib.core.records import AmountFilter, DecodedRecord, EncryptedRecord, HeightRange
from aleolib.errors import InvalidRangeError


class TestHeightRange:
    def test_valid_range(self):
        """Half-open range reports its length and membership"""
        height_range = HeightRange.validated(0, 204)

        assert len(height_range) == 204
        assert 0 in height_range
        assert 203 in height_range
        assert 204 not in height_range

    @pytest.mark.parametrize("start,end", [(5, 0), (5, 5), (-5, 5), (-1, -1)])
    def test_invalid_bounds_rejected(self, start, end):
        with pytest.raises(InvalidRangeError) as exc:
            HeightRange.validated(start, end)
        assert exc.value.start == start
        assert exc.value.end == end

    @pytest.mark.parametrize("start,end", [("0", 5), (0, 5.0), (True, 5), (0, None)])
    def test_non_integer_bounds_rejected(self, start, end):
        with pytest.raises(InvalidRangeError):
            HeightRange.validated(start, end)

    def test_invalid_range_is_a_value_error(self):
        with pytest.raises(ValueError):
            HeightRange.validated(3, 1)

    def test_pages_cover_range_without_overlap(self):
        pages = HeightRange(0, 204).pages(50)

        assert [(p.start, p.end) for p in pages] == [(0, 50), (50, 100), (100, 150), (150, 200), (200, 204)]
        assert sum(len(p) for p in pages) == 204

    def test_single_short_page(self):
        assert HeightRange(1, 3).pages(50) == [HeightRange(1, 3)]


class TestAmountFilter:
    def test_empty_filter_accepts_everything(self):
        amount_filter = AmountFilter.build()

        assert amount_filter.is_empty
        assert amount_filter.accepts(0)
        assert amount_filter.accepts(10 ** 12)

    def test_amount_set_membership(self):
        amount_filter = AmountFilter.build(amounts=[100, 200])

        assert amount_filter.accepts(100)
        assert amount_filter.accepts(200)
        assert not amount_filter.accepts(150)

    def test_max_amount_is_inclusive(self):
        amount_filter = AmountFilter.build(max_amount=1000)

        assert amount_filter.accepts(1000)
        assert amount_filter.accepts(1)
        assert not amount_filter.accepts(1001)

    def test_both_filters_must_hold(self):
        amount_filter = AmountFilter.build(amounts=[100, 5000], max_amount=1000)

        assert amount_filter.accepts(100)
        assert not amount_filter.accepts(5000)
        assert not amount_filter.accepts(500)

    def test_empty_amounts_means_no_set_filter(self):
        assert AmountFilter.build(amounts=[]).amounts is None

    def test_generator_amounts_are_materialized(self):
        amount_filter = AmountFilter.build(amounts=(a for a in [1, 2]))

        assert amount_filter.accepts(2)
        assert amount_filter.accepts(2)

    @pytest.mark.parametrize("amounts,max_amount", [([-1], None), (["100"], None), ("100", None), (None, -5), (None, 1.5)])
    def test_invalid_values_rejected(self, amounts, max_amount):
        with pytest.raises(ValueError):
            AmountFilter.build(amounts, max_amount)


class TestDecodedRecord:
    def test_to_dict_and_plaintext(self):
        record = DecodedRecord(owner="aleo1owner", amount=1_500_000, nonce="7group")
        encrypted = EncryptedRecord("record1x", "au1t", "at1t", "credits.aleo", "transfer_private", 12, 0)
        record.with_context(encrypted)

        data = record.to_dict()
        assert data["block_height"] == 12
        assert data["transition_id"] == "au1t"
        assert data["amount_display"] == "1.5 credits"
        assert "microcredits: 1500000u64.private" in record.to_plaintext()
        assert "_nonce: 7group.public" in record.to_plaintext()
        assert record.microcredits == 1_500_000
