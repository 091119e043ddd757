"""Tests for the data CLI commands."""

import json
from dataclasses import replace
from decimal import Decimal

import pytest

from klirr.cli.main import cli
from klirr.domain.entities import ExpensedMonths, Rate
from klirr.domain.period import YearAndMonth, YearMonthAndDay
from klirr.domain.samples import sample_data
from klirr.storage.file_store import FileDataStore

# vendor 9, client 9, information 5, payment 5, service fees 4
ALL_PROMPTS = 32


@pytest.fixture
def data_cli(cli_runner, data_dir):
    def run(*args, **kwargs):
        return cli_runner.invoke(cli, ["--data-dir", str(data_dir), "data", *args], **kwargs)

    return run


class TestInit:
    def test_use_defaults(self, cli_runner, tmp_path):
        data_dir = tmp_path / "fresh"
        result = cli_runner.invoke(cli, ["--data-dir", str(data_dir), "data", "init", "--use-defaults"])

        assert result.exit_code == 0, result.output
        assert f"Initialized data in {data_dir}" in result.output
        assert FileDataStore(data_dir).read_data() == replace(sample_data(), expensed_months=ExpensedMonths())

    def test_accepting_every_default(self, cli_runner, tmp_path):
        data_dir = tmp_path / "fresh"
        result = cli_runner.invoke(
            cli, ["--data-dir", str(data_dir), "data", "init"], input="\n" * ALL_PROMPTS
        )

        assert result.exit_code == 0, result.output
        assert FileDataStore(data_dir).read_data() == replace(sample_data(), expensed_months=ExpensedMonths())

    def test_existing_data_is_kept_unless_confirmed(self, data_cli, store):
        result = data_cli("init", "--use-defaults", input="n\n")

        assert result.exit_code == 0
        assert "Cancelled." in result.output
        assert store.read_expensed_months() == sample_data().expensed_months

    def test_force_overwrites(self, data_cli, store):
        result = data_cli("init", "--use-defaults", "--force")
        assert result.exit_code == 0, result.output
        assert store.read_expensed_months() == ExpensedMonths()


class TestValidate:
    def test_valid(self, data_cli):
        result = data_cli("validate")

        assert result.exit_code == 0, result.output
        assert "is valid" in result.output
        assert "Lupin et Associés" in result.output
        assert "Expensed months: 2025-04" in result.output

    def test_broken_record(self, data_cli, data_dir):
        (data_dir / "client.json").write_text("{", encoding="utf-8")
        result = data_cli("validate")
        assert result.exit_code == 2
        assert "client" in result.output

    def test_shows_service_rate(self, data_cli):
        result = data_cli("validate")
        assert "Agreed Consulting Fees, 350 EUR per day" in result.output

    def test_offset_month_recorded_as_off(self, data_cli, store):
        information = store.read_information()
        store.write_information(replace(information, months_off=(information.offset.month,)))

        result = data_cli("validate")

        assert result.exit_code == 1
        assert "Month 2025-03 holds the known invoice number" in result.output
        assert "is valid" not in result.output



class TestEdit:
    def test_edit_client(self, data_cli, store):
        result = data_cli("edit", "client", input="Moriarty plc\n" + "\n" * 8)

        assert result.exit_code == 0, result.output
        assert "Updated client data" in result.output
        data = store.read_data()
        assert data.client.company_name == "Moriarty plc"
        assert data.vendor == sample_data().vendor
        assert data.expensed_months == sample_data().expensed_months

    def test_invalid_answer_is_asked_again(self, data_cli, store):
        result = data_cli("edit", "payment-info", input="\n\n\nEURO\nsek\n\n")

        assert result.exit_code == 0, result.output
        assert "Invalid currency code 'EURO'" in result.output
        assert store.read_data().payment_info.currency == "SEK"

    def test_service_fees(self, data_cli, store):
        result = data_cli("edit", "service-fees", input="\n\n1,250.50\n\n")
        assert result.exit_code == 0, result.output
        assert "Price per working day" in result.output
        assert store.read_data().service_fees.unit_price == Decimal("1250.50")

    def test_hourly_service_fees(self, data_cli, store):
        result = data_cli("edit", "service-fees", input="\nhourly\n95\n\n")

        assert result.exit_code == 0, result.output
        assert "Price per hour" in result.output
        fees = store.read_data().service_fees
        assert fees.rate == Rate.HOURLY
        assert fees.unit_price == Decimal("95")

    def test_unknown_rate_is_asked_again(self, data_cli, store):
        result = data_cli("edit", "service-fees", input="\nweekly\nmonthly\n9000\n\n")

        assert result.exit_code == 0, result.output
        assert "Unknown rate 'weekly'" in result.output
        assert store.read_data().service_fees.rate == Rate.MONTHLY

    def test_negative_price_is_asked_again(self, data_cli, store):
        result = data_cli("edit", "service-fees", input="\n\n-350\n400\n\n")

        assert result.exit_code == 0, result.output
        assert "must not be negative" in result.output
        assert store.read_data().service_fees.unit_price == Decimal("400")

    def test_offset_month_recorded_as_off_is_asked_again(self, data_cli, store):
        store.write_information(store.read_information().with_month_off(YearAndMonth(2025, 7)))

        result = data_cli("edit", "information", input="2025-07\n2025-06\n\n\n\n\n")

        assert result.exit_code == 0, result.output
        assert "cannot be recorded as off" in result.output
        assert store.read_information().offset.month == YearAndMonth(2025, 6)


    def test_unknown_selector(self, data_cli):
        result = data_cli("edit", "everything")
        assert result.exit_code == 2


class TestPeriodOff:
    def test_records_month(self, data_cli, store):
        result = data_cli("period-off", "--period", "2025-07")

        assert result.exit_code == 0, result.output
        assert "Recorded 2025-07 as a month off" in result.output
        assert store.read_information().months_off == (YearAndMonth(2025, 7),)

    def test_already_recorded(self, data_cli, store):
        data_cli("period-off", "--period", "2025-07")
        result = data_cli("period-off", "--period", "2025-07")

        assert result.exit_code == 0
        assert "already recorded" in result.output
        assert store.read_information().months_off == (YearAndMonth(2025, 7),)

    def test_invalid_period(self, data_cli):
        result = data_cli("period-off", "--period", "2025-13")
        assert result.exit_code == 1

    def test_offset_month_is_refused(self, data_cli, store):
        result = data_cli("period-off", "--period", "2025-03")

        assert result.exit_code == 1
        assert "cannot be recorded as off" in result.output
        assert store.read_information().months_off == ()



class TestExpenses:
    def test_records_items(self, data_cli, store):
        result = data_cli(
            "expenses",
            "--period",
            "2025-05",
            "--item",
            "Coffee, 4.5, GBP, 2, 2025-05-15",
            "--item",
            "Train, 129, SEK, 1, 2025-05-16",
        )

        assert result.exit_code == 0, result.output
        assert "Recorded 2 expense(s) for 2025-05" in result.output
        items = store.read_expensed_months().items_for(YearAndMonth(2025, 5))
        assert [item.name for item in items] == ["Coffee", "Train"]
        assert items[0].when == YearMonthAndDay(2025, 5, 15)
        assert items[0].unit_price == Decimal("4.5")

    def test_appends_to_existing_month(self, data_cli, store):
        result = data_cli("expenses", "--period", "2025-04", "--item", "Taxi, 20, EUR, 1, 2025-04-20")
        assert result.exit_code == 0, result.output
        assert len(store.read_expensed_months().items_for(YearAndMonth(2025, 4))) == 4

    def test_invalid_item_writes_nothing(self, data_cli, data_dir):
        before = (data_dir / "expensed_months.json").read_text(encoding="utf-8")

        result = data_cli(
            "expenses",
            "--period",
            "2025-05",
            "--item",
            "Coffee, 4.5, GBP, 2, 2025-05-15",
            "--item",
            "Coffee, cheap, GBP",
        )

        assert result.exit_code == 1
        assert "Coffee, cheap, GBP" in result.output
        assert (data_dir / "expensed_months.json").read_text(encoding="utf-8") == before

    def test_amounts_are_stored_as_strings(self, data_cli, data_dir):
        data_cli("expenses", "--period", "2025-05", "--item", "Coffee, 4.5, GBP, 2, 2025-05-15")
        raw = json.loads((data_dir / "expensed_months.json").read_text(encoding="utf-8"))
        assert raw["2025-05"][0]["unit_price"] == "4.5"

    def test_written_out_date(self, data_cli, store):
        result = data_cli("expenses", "--period", "2025-05", "--item", "Coffee, 4.5, GBP, 2, May 15, 2025")
        assert result.exit_code == 0, result.output
        (item,) = store.read_expensed_months().items_for(YearAndMonth(2025, 5))
        assert item.when == YearMonthAndDay(2025, 5, 15)
