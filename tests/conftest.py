import random

import pytest

import energyindex as ei

HEADER = "Data;Autokonsumpcja;Eksport;Import;Pobor;Produkcja"


@pytest.fixture
def index():
    return ei.EnergyIndex()


@pytest.fixture
def feb_pair(index):
    # Two readings 15 minutes apart in the first bucket of 2021-02-01
    index.insert(
        ei.Measurement.at(2021, 2, 1, 0, 0, production=100.0, import_energy=10.0)
    )
    index.insert(
        ei.Measurement.at(
            2021, 2, 1, 0, 15, production=250.5, import_energy=20.0, export_energy=55.5
        )
    )
    return index


@pytest.fixture
def spread_measurements():
    """Readings across years, months, days and all four buckets, shuffled."""
    out = []
    for year in (2020, 2021, 2022):
        for month in (1, 6, 12):
            for day in (1, 15, 28):
                for hour in (0, 5, 6, 13, 18, 23):
                    out.append(
                        ei.Measurement.at(
                            year, month, day, hour, 30, production=float(hour), consumption=1.0
                        )
                    )
    random.Random(6).shuffle(out)
    return out


@pytest.fixture
def spread_index(index, spread_measurements):
    for m in spread_measurements:
        index.insert(m)
    return index


@pytest.fixture
def csv_path(tmp_path):
    lines = [
        HEADER,
        "01.02.2021 00:00;1,5;2;3;4;100",
        '"01.02.2021 00:15";"1.0";"55,5";3;4;250,5',
        "01.02.2021 00:15;9;9;9;9;9",
        "bad;1;2;3;4;5",
        "01.02.2021 00:30;1;2;3",
        "",
        "01.02.2021 00:45;1;-2;3;4;5",
        "01.02.2021 01:00;x;2;3;4;5",
        "01.02.2021 01:15;1;2;3;4;5;extra",
    ]
    path = tmp_path / "Chart_Export.csv"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path
