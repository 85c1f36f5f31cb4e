import pathlib
import sys

import pytest


REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.append(str(REPO_ROOT))

from ev_dashboard.data import _load_dashboard_data_cached, build_data_context, parse_csv_text  # noqa: E402


HEADER = (
    "VIN,County,City,Postal Code,Model Year,Make,Model,Electric Vehicle Type,"
    "Clean Alternative Fuel Vehicle (CAFV) Eligibility,Electric Range,Base MSRP,"
    "Legislative District,DOL Vehicle ID,Electric Utility,2020 Census Tract"
)

ROWS = [
    "5YJ3E1EB4L,King,Seattle,98122,2020,TESLA,MODEL 3,Battery Electric Vehicle (BEV),Eligible,322,0,37,125701579,CITY OF SEATTLE,53033007800",
    "1N4AZ0CP8D,King,Bellevue,98004,2020,NISSAN,LEAF,Battery Electric Vehicle (BEV),Eligible,75,0,48,244285107,PUGET SOUND ENERGY INC,53033023200",
    "5YJYGDEE1M,Snohomish,Everett,98201,2021,TESLA,MODEL Y,Battery Electric Vehicle (BEV),Unknown,0,0,38,156773144,PUGET SOUND ENERGY INC,53061040400",
    "WBY8P6C58K,King,Seattle,98109,2019,BMW,I3,Battery Electric Vehicle (BEV),Eligible,153,0,36,289441190,CITY OF SEATTLE,53033006700",
    "5YJ3E1EA7K,Kitsap,Bremerton,98312,2019,TESLA,MODEL 3,Battery Electric Vehicle (BEV),Eligible,220,0,26,477309682,PUGET SOUND ENERGY INC,53035080700",
    "1G1FZ6S02L,Snohomish,Everett,98204,2020,CHEVROLET,BOLT EV,Battery Electric Vehicle (BEV),Eligible,259,0,21,110515687,PUGET SOUND ENERGY INC,53061041800",
]


@pytest.fixture()
def ev_csv_text():
    return "\n".join([HEADER] + ROWS) + "\n"


@pytest.fixture()
def scenario_csv_text():
    return "Model Year,Make,Electric Range\n2020,Tesla,250\n2020,Nissan,150\n2021,Tesla,\n"


@pytest.fixture()
def data_ctx(ev_csv_text):
    return build_data_context(parse_csv_text(ev_csv_text), source="memory")


@pytest.fixture()
def records(data_ctx):
    return data_ctx["records"]


@pytest.fixture()
def ev_csv_file(tmp_path, ev_csv_text):
    path = tmp_path / "ev_data.csv"
    path.write_text(ev_csv_text, encoding="utf-8")
    return path


@pytest.fixture()
def api_client(monkeypatch, ev_csv_file):
    from fastapi.testclient import TestClient

    from api.main import app

    monkeypatch.setenv("EV_DASHBOARD_CSV", str(ev_csv_file))
    _load_dashboard_data_cached.cache_clear()
    client = TestClient(app)
    try:
        yield client
    finally:
        _load_dashboard_data_cached.cache_clear()


def numbered_csv(count: int) -> str:
    lines = ["Model Year,Make,Model,Electric Range"]
    for i in range(count):
        lines.append(f"{2010 + i % 5},Make{i:02d},Model{i:02d},{i}")
    return "\n".join(lines) + "\n"
