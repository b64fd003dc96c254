import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import numpy as np
import pandas as pd
import pytest
from unittest.mock import MagicMock, patch

from bike_rental import MODEL_CONFIGS
from bike_rental.data import DataLoader, DataProcessor, TARGET_COLUMN
from bike_rental.train_predict import Model

CSV_HEADER = [
    "Season",
    "Month",
    "Hour",
    "Holiday",
    "Weekday",
    "WorkingDay",
    "WeatherCondition",
    "Temperature",
    "Humidity",
    "Windspeed",
    "RentalType",
]


def make_rental_frame(n_rows=200, seed=0):
    """Dataset sintético determinista: alquiler 'True' con calor y buen tiempo."""
    rng = np.random.default_rng(seed)
    df = pd.DataFrame(
        {
            "season": rng.integers(1, 5, n_rows),
            "month": rng.integers(1, 13, n_rows),
            "hour": rng.integers(0, 24, n_rows),
            "holiday": rng.integers(0, 2, n_rows),
            "weekday": rng.integers(0, 7, n_rows),
            "workingday": rng.integers(0, 2, n_rows),
            "weathercondition": rng.integers(1, 5, n_rows),
            "temperature": rng.uniform(-5.0, 35.0, n_rows).round(1),
            "humidity": rng.uniform(20.0, 100.0, n_rows).round(1),
            "windspeed": rng.uniform(0.0, 30.0, n_rows).round(1),
        }
    )
    df[TARGET_COLUMN] = ((df["temperature"] > 15.0) & (df["weathercondition"] <= 2)).astype(int)
    return df


@pytest.fixture
def rental_dataframe():
    return make_rental_frame()


@pytest.fixture
def rental_csv(tmp_path, rental_dataframe):
    """Escribe el dataset sintético con la cabecera original y etiquetas 0/1."""
    csv_path = tmp_path / "bike_sharing.csv"
    out = rental_dataframe.copy()
    out.columns = CSV_HEADER
    out.to_csv(csv_path, index=False)
    return csv_path


@pytest.fixture
def loaded_dataframe(rental_csv):
    return DataLoader(rental_csv).load()


@pytest.fixture
def train_test(loaded_dataframe):
    return DataLoader("unused.csv").split(loaded_dataframe, test_size=0.1, random_state=0)


@pytest.fixture
def data_processor():
    processor = DataProcessor()
    processor.build()
    return processor


@pytest.fixture
def trained_model(train_test, data_processor):
    X_train, _, y_train, _ = train_test
    cfg = MODEL_CONFIGS["fast_tree"]
    model = Model(
        name="fast_tree",
        estimator=cfg["estimator"],
        param_grid={},
        preprocessor=data_processor.column_transformer,
        description="Fixture model",
    )
    model.build_pipeline()
    model.fit(X_train, y_train)
    return model


@pytest.fixture
def mock_mlflow():
    with patch("bike_rental.main.mlflow.start_run") as start_run, patch(
        "bike_rental.main.mlflow.set_tracking_uri"
    ) as set_tracking_uri, patch(
        "bike_rental.main.mlflow.set_experiment"
    ) as set_experiment, patch(
        "bike_rental.main.mlflow.log_params"
    ) as log_params, patch(
        "bike_rental.main.mlflow.log_metric"
    ) as log_metric:
        start_run.return_value.__enter__.return_value = MagicMock()
        yield {
            "start_run": start_run,
            "set_tracking_uri": set_tracking_uri,
            "set_experiment": set_experiment,
            "log_params": log_params,
            "log_metric": log_metric,
        }
