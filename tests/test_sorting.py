import pytest

from quantify.utils.error_handler import ValidationError
from quantify.utils.sorting import RatingSort, ReviewSort, StoreSort, UserSort


class TestSortKeys:

    def test_missing_value_falls_back_to_default(self):
        assert StoreSort.parse(None, StoreSort.NAME) is StoreSort.NAME
        assert ReviewSort.parse('', ReviewSort.NEWEST) is ReviewSort.NEWEST

    def test_known_values_parse(self):
        assert UserSort.parse('name_desc', UserSort.NEWEST) is UserSort.NAME_DESC
        assert RatingSort.parse('store', RatingSort.NEWEST) is RatingSort.STORE

    def test_unknown_value_lists_allowed_keys(self):
        with pytest.raises(ValidationError) as exc_info:
            ReviewSort.parse('created_at; drop table users', ReviewSort.NEWEST)

        assert 'rating_high' in exc_info.value.message
        assert exc_info.value.details == {'field': 'sort'}

    def test_every_key_maps_to_an_ordering(self):
        for key in UserSort:
            assert key.order_by()
        for key in ReviewSort:
            assert key.order_by()
        for key in RatingSort:
            assert key.order_by()

    def test_rating_sort_needs_an_average_column(self):
        with pytest.raises(ValidationError):
            StoreSort.RATING.order_by()
