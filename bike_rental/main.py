import os
import argparse
import traceback
from typing import List, Optional

import mlflow
from dotenv import load_dotenv

from bike_rental import DATA_PATH, MODEL_CONFIGS, RANDOM_STATE, TEST_SIZE
from bike_rental.data import DataLoader, DataProcessor
from bike_rental.schemas import RentalRecord
from bike_rental.train_predict import Evaluator, Model, PredictionEngine

# Пример 1: июнь, день, рабочий день, хорошая погода
# Пример 2: декабрь, плохая погода
EXAMPLE_RECORDS: List[RentalRecord] = [
    RentalRecord(
        season=1, month=6, hour=12, holiday=0, weekday=3, workingday=1,
        weathercondition=1, temperature=18.0, humidity=75.0, windspeed=8.0,
    ),
    RentalRecord(
        season=4, month=12, hour=16, holiday=0, weekday=5, workingday=1,
        weathercondition=4, temperature=-2.0, humidity=90.0, windspeed=20.0,
    ),
]


class Orchestrator:
    """
    Etapas (estrictamente secuenciales):
    - data: carga, reporte de clases y partición train/test
    - train: construye el preprocesador y ajusta el clasificador sólo con train
    - evaluate: AUC y F1 sobre test
    - predict: predicciones de los registros de ejemplo
    """

    def __init__(
        self,
        data_path: str = DATA_PATH,
        test_size: float = TEST_SIZE,
        random_state: int = RANDOM_STATE,
        model_name: str = "fast_tree",
    ):
        self.data_path = data_path
        self.test_size = test_size
        self.random_state = random_state
        self.model_name = model_name

        self.X_train = None
        self.X_test = None
        self.y_train = None
        self.y_test = None
        self.model: Optional[Model] = None

    # -----------------------
    # Etapa: DATA
    # -----------------------
    def stage_data(self):
        print("Загрузка данных...")
        dl = DataLoader(self.data_path, delimiter=",", has_header=True)
        df = dl.load()
        class_counts = dl.report_class_balance(df)

        print("Разделение данных...")
        self.X_train, self.X_test, self.y_train, self.y_test = dl.split(
            df, test_size=self.test_size, random_state=self.random_state
        )
        return class_counts

    # -----------------------
    # Etapa: TRAIN
    # -----------------------
    def stage_train(self) -> Model:
        if self.X_train is None:
            raise RuntimeError("Ejecuta la etapa 'data' antes de 'train'.")
        if self.model_name not in MODEL_CONFIGS:
            raise KeyError(f"Modelo desconocido: {self.model_name}")
        cfg = MODEL_CONFIGS[self.model_name]

        print("Создание пайплайна...")
        preprocessor = DataProcessor().build()
        self.model = Model(
            name=self.model_name,
            estimator=cfg["estimator"],
            param_grid=cfg.get("params", {}),
            preprocessor=preprocessor,
            description=cfg.get("description", ""),
        )
        self.model.build_pipeline()

        print("Обучение модели...")
        self.model.fit(self.X_train, self.y_train)
        return self.model

    # -----------------------
    # Etapa: EVALUATE
    # -----------------------
    def stage_evaluate(self) -> dict:
        if self.model is None:
            raise RuntimeError("Ejecuta la etapa 'train' antes de 'evaluate'.")

        print("Выполняем оценку...")
        results = Evaluator().evaluate(self.model, self.X_test, self.y_test)

        print("Оценка качества модели...")
        test_metrics = results["metrics"]["test"]
        print(f"AUC: {test_metrics['auc']:.2f}")
        print(f"F1 Score: {test_metrics['f1']:.2f}")
        return results

    # -----------------------
    # Etapa: PREDICT
    # -----------------------
    def stage_predict(self, records: Optional[List[RentalRecord]] = None):
        if self.model is None:
            raise RuntimeError("Ejecuta la etapa 'train' antes de 'predict'.")

        print("Создаем движок предсказаний...")
        engine = PredictionEngine(self.model)
        results = []
        for record in records or EXAMPLE_RECORDS:
            result = engine.predict(record)
            print(
                f"Пример: {record.weathercondition:g} погода, темп {record.temperature:g}, "
                f"предсказание: {result.predicted_label} (вероятность: {result.probability:.2f})"
            )
            results.append(result)
        return results

    def run(self) -> dict:
        class_counts = self.stage_data()
        self.stage_train()
        evaluation = self.stage_evaluate()
        predictions = self.stage_predict()

        self._track(evaluation["metrics"]["test"])
        return {
            "class_counts": class_counts,
            "metrics": evaluation["metrics"],
            "predictions": predictions,
        }

    def _track(self, test_metrics: dict):
        """Registra parámetros y métricas en MLflow si hay tracking URI configurado."""
        tracking_uri = os.getenv("MLFLOW_TRACKING_URI")
        if not tracking_uri:
            return
        try:
            mlflow.set_tracking_uri(tracking_uri)
            mlflow.set_experiment("bike_rental_type")
            with mlflow.start_run(run_name=f"train_{self.model_name}"):
                mlflow.log_params({
                    "data_path": self.data_path,
                    "test_size": self.test_size,
                    "random_state": self.random_state,
                    "model": self.model_name,
                })
                for k, v in test_metrics.items():
                    mlflow.log_metric(k, float(v))
        except Exception as e:
            print(f"[WARN] No se pudieron registrar métricas en MLflow: {e}")


def wait_for_keypress(prompt: str = "Нажмите любую клавишу для завершения..."):
    print(prompt)
    try:
        input()
    except EOFError:
        # stdin cerrado: no hay tecla que esperar
        return


def build_argparser():
    p = argparse.ArgumentParser(description="Предсказание типа аренды велосипеда")
    p.add_argument("--csv", default=os.getenv("BIKE_SHARING_CSV", DATA_PATH), help="Ruta a bike_sharing.csv")
    p.add_argument("--test_size", type=float, default=TEST_SIZE, help="Proporción de test split")
    p.add_argument("--random_state", type=int, default=RANDOM_STATE, help="Semilla aleatoria")
    p.add_argument("--no_wait", action="store_true", help="No esperar una tecla al terminar")
    return p


def main(argv=None):
    load_dotenv()
    args = build_argparser().parse_args(argv)

    print("Предсказание типа аренды велосипеда с использованием scikit-learn")
    try:
        orch = Orchestrator(
            data_path=args.csv,
            test_size=args.test_size,
            random_state=args.random_state,
        )
        orch.run()
        if not args.no_wait:
            wait_for_keypress("\nНажмите любую клавишу для завершения...")
    except Exception as ex:
        print(f"Ошибка: {ex}")
        print(f"Стек вызовов: {traceback.format_exc()}")
        if not args.no_wait:
            wait_for_keypress()


if __name__ == "__main__":
    main()
