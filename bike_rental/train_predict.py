"""
Entrenamiento, evaluación e inferencia del clasificador de tipo de alquiler.
Clases incluidas: Model, Evaluator, PredictionEngine.
"""
import time

import numpy as np
import pandas as pd
from sklearn.base import clone
from sklearn.metrics import f1_score, roc_auc_score
from sklearn.model_selection import GridSearchCV
from sklearn.pipeline import Pipeline

from bike_rental.data import FEATURE_COLUMNS
from bike_rental.schemas import PredictionResult, RentalRecord


class Model:
    """
    Encapsula: construcción de pipeline (preprocessor -> model) y entrenamiento.
    Con param_grid vacío ajusta directamente; si no, elige el mejor pipeline con GridSearchCV.
    """

    def __init__(self, name, estimator, param_grid, preprocessor, description=""):
        self.name = name
        self.estimator = estimator
        self.param_grid = param_grid or {}
        self.description = description
        self.preprocessor = preprocessor

        self.pipeline = None
        self.grid_search = None
        self.best_estimator_ = None
        self.best_params_ = None
        self.cv_best_auc_ = None
        self.train_time_seconds_ = None

    def build_pipeline(self):
        """Crea: preprocessor -> model"""
        self.pipeline = Pipeline([
            ("preprocessor", self.preprocessor),
            ("model", clone(self.estimator)),
        ])
        return self.pipeline

    def fit(self, X_train, y_train, cv=5, scoring="roc_auc", n_jobs=None, verbose=0):
        """Entrena el pipeline y guarda el resultado en best_estimator_."""
        missing = [col for col in FEATURE_COLUMNS if col not in X_train.columns]
        if missing:
            raise KeyError(f"Columnas de features ausentes: {missing}")
        if y_train is None:
            raise KeyError("Columna de etiqueta ausente")
        if len(y_train) != len(X_train):
            raise ValueError(f"Label length mismatch: X={len(X_train)}, y={len(y_train)}")

        if self.pipeline is None:
            self.build_pipeline()

        t0 = time.time()
        if self.param_grid:
            self.grid_search = GridSearchCV(
                self.pipeline,
                self.param_grid,
                cv=cv,
                scoring=scoring,
                n_jobs=n_jobs,
                verbose=verbose,
            )
            self.grid_search.fit(X_train[FEATURE_COLUMNS], y_train)
            self.best_estimator_ = self.grid_search.best_estimator_
            self.best_params_ = self.grid_search.best_params_
            self.cv_best_auc_ = float(self.grid_search.best_score_)
        else:
            self.pipeline.fit(X_train[FEATURE_COLUMNS], y_train)
            self.best_estimator_ = self.pipeline
            self.best_params_ = {}
        self.train_time_seconds_ = time.time() - t0
        return self

    def _fitted(self):
        if self.best_estimator_ is None:
            raise RuntimeError("El modelo no ha sido entrenado. Llama a fit() primero.")
        return self.best_estimator_

    def predict(self, X):
        return self._fitted().predict(X[FEATURE_COLUMNS])

    def predict_proba(self, X):
        """Probabilidad de la clase positiva (rentaltype = True)."""
        pipeline = self._fitted()
        proba = pipeline.predict_proba(X[FEATURE_COLUMNS])
        positive = list(pipeline.classes_).index(True)
        return proba[:, positive]

    def decision_function(self, X):
        return self._fitted().decision_function(X[FEATURE_COLUMNS])


class Evaluator:
    """
    Evalúa AUC y F1 sobre el conjunto de prueba y mide tiempo de inferencia.
    Acepta la clase Model o cualquier objeto con predict/predict_proba.
    """

    def evaluate(self, model, X_test, y_test):
        """
        Args:
            model: Model entrenado.
            X_test (pd.DataFrame)
            y_test (pd.Series of bool)
        Returns:
            dict: {"metrics": {...}, "predictions": {...}}

        Raises:
            ValueError: si y_test tiene una sola clase (AUC indefinido).
        """
        y_true = np.asarray(y_test).astype(int)
        if len(np.unique(y_true)) < 2:
            raise ValueError(
                "AUC no está definido: el conjunto de prueba contiene una sola clase "
                f"({len(y_true)} registros)"
            )

        t0 = time.time()
        y_proba = np.asarray(model.predict_proba(X_test), dtype=float)
        # Mismas etiquetas que PredictionEngine
        y_pred = np.asarray(model.predict(X_test)).astype(int)
        infer_time_ms_per_sample = (time.time() - t0) / max(len(X_test), 1) * 1000.0

        auc = float(roc_auc_score(y_true, y_proba))
        f1 = float(f1_score(y_true, y_pred, zero_division=0))

        metrics = {
            "test": {
                "auc": auc,
                "f1": f1,
            },
            "timing": {
                "inference_time_ms_per_sample": float(infer_time_ms_per_sample),
            },
        }

        return {
            "metrics": metrics,
            "predictions": {
                "y_test_pred": y_pred.astype(bool).tolist(),
                "y_test_proba": y_proba.tolist(),
            },
        }


class PredictionEngine:
    """Predicción de un solo registro con el pipeline ya ajustado."""

    def __init__(self, model):
        self.model = model

    def _frame(self, records):
        rows = [record.model_dump(include=set(FEATURE_COLUMNS)) for record in records]
        return pd.DataFrame(rows, columns=FEATURE_COLUMNS).astype("float32")

    def predict_many(self, records):
        X = self._frame(records)
        probabilities = self.model.predict_proba(X)
        scores = self.model.decision_function(X)
        labels = self.model.predict(X)
        return [
            PredictionResult(
                predicted_label=bool(label),
                probability=float(np.clip(probability, 0.0, 1.0)),
                score=float(score),
            )
            for label, probability, score in zip(labels, probabilities, scores)
        ]

    def predict(self, record: RentalRecord) -> PredictionResult:
        return self.predict_many([record])[0]
