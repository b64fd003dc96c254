"""
Carga, reporte de clases, partición y preprocesamiento del dataset de alquiler de bicicletas.
Clases incluidas: DataLoader, DataProcessor.
"""
import os

import numpy as np
import pandas as pd
from sklearn.compose import ColumnTransformer
from sklearn.model_selection import train_test_split
from sklearn.preprocessing import MinMaxScaler, OneHotEncoder
from sklearn.utils.validation import check_is_fitted

from bike_rental.schemas import RentalRecord

# Orden posicional de las columnas en bike_sharing.csv
FEATURE_COLUMNS = [
    "season",
    "month",
    "hour",
    "holiday",
    "weekday",
    "workingday",
    "weathercondition",
    "temperature",
    "humidity",
    "windspeed",
]
TARGET_COLUMN = "rentaltype"
RECORD_COLUMNS = FEATURE_COLUMNS + [TARGET_COLUMN]

CAT_COLS = ["season", "weathercondition"]
NUM_COLS = ["temperature", "humidity", "windspeed"]
PASSTHROUGH_COLS = ["month", "hour", "holiday", "weekday", "workingday"]

LABEL_VALUES = {
    "0": False,
    "1": True,
    "0.0": False,
    "1.0": True,
    "false": False,
    "true": True,
}


class DataLoader:
    """Lee bike_sharing.csv y lo particiona en train/test.

    Atributos:
        data_path: Ruta al archivo CSV.
        delimiter: Separador de columnas.
        has_header: Si la primera fila es cabecera (se ignora su texto).
        target_col: Nombre de la etiqueta booleana.
    """

    def __init__(self, data_path, delimiter=",", has_header=True, target_col=TARGET_COLUMN):
        self.data_path = data_path
        self.delimiter = delimiter
        self.has_header = has_header
        self.target_col = target_col

    def load(self):
        """Lee el CSV asignando las columnas por posición.

        Returns:
            pd.DataFrame: columnas FEATURE_COLUMNS + target_col, etiqueta de tipo bool.

        Raises:
            FileNotFoundError: si el archivo no existe.
            ValueError: si el número de columnas o los tipos no coinciden.
        """
        if not os.path.exists(self.data_path):
            raise FileNotFoundError(f"Archivo de datos no encontrado: {self.data_path}")

        raw = pd.read_csv(
            self.data_path,
            sep=self.delimiter,
            header=0 if self.has_header else None,
            dtype=str,
            skipinitialspace=True,
        )
        columns = FEATURE_COLUMNS + [self.target_col]
        if raw.shape[1] != len(columns):
            raise ValueError(
                f"Expected {len(columns)} columns in {self.data_path}, found {raw.shape[1]}"
            )
        raw.columns = columns

        df = pd.DataFrame(index=raw.index)
        for col in FEATURE_COLUMNS:
            values = pd.to_numeric(raw[col], errors="coerce")
            invalid = values.isna() | ~np.isfinite(values.fillna(0.0))
            if invalid.any():
                first_bad = int(invalid.idxmax())
                raise ValueError(
                    f"Column '{col}' has {int(invalid.sum())} missing, non-numeric or non-finite values "
                    f"(first at data row {first_bad + 1}: {raw[col].iloc[first_bad]!r})"
                )
            df[col] = values.astype("float32")

        labels = raw[self.target_col].str.strip().str.lower().map(LABEL_VALUES)
        if labels.isna().any():
            first_bad = int(labels.isna().idxmax())
            raise ValueError(
                f"Column '{self.target_col}' must hold 0/1 or true/false "
                f"(first invalid at data row {first_bad + 1}: {raw[self.target_col].iloc[first_bad]!r})"
            )
        df[self.target_col] = labels.astype(bool)

        print(f"Shape: {df.shape}")
        return df

    def to_records(self, df):
        """Convierte un DataFrame cargado en una lista de RentalRecord."""
        return [RentalRecord(**row) for row in df.to_dict(orient="records")]

    def report_class_balance(self, df):
        """Imprime cuántos registros hay por cada valor de la etiqueta.

        Si falta una de las clases, avisa y continúa.

        Returns:
            tuple: (count_false, count_true)
        """
        labels = df[self.target_col].astype(bool)
        count_true = int(labels.sum())
        count_false = int(len(labels) - count_true)

        print("Распределение классов:")
        print(f"  RentalType = False: {count_false} записей")
        print(f"  RentalType = True:  {count_true} записей")

        if count_false == 0 or count_true == 0:
            print("Внимание: В данных не хватает одного из классов!")

        return count_false, count_true

    def split(self, df, test_size=0.1, random_state=0):
        """Divide en conjuntos de entrenamiento y prueba.

        Args:
            df: DataFrame completo.
            test_size: Proporción para el conjunto de prueba.
            random_state: Semilla de aleatoriedad.

        Returns:
            X_train, X_test, y_train, y_test
        """
        if self.target_col not in df.columns:
            raise KeyError(f"Target '{self.target_col}' no existe. Columnas: {list(df.columns)}")

        X = df.drop(columns=[self.target_col])
        y = df[self.target_col]

        X_train, X_test, y_train, y_test = train_test_split(
            X, y, test_size=test_size, random_state=random_state
        )
        print(f"Training set: {X_train.shape[0]} samples")
        print(f"Test set: {X_test.shape[0]} samples")

        return X_train, X_test, y_train, y_test


class DataProcessor:
    """One-hot de columnas categóricas, min-max de numéricas y concatenación en un vector.

    Atributos:
    categorical_var_cols: Columnas codificadas one-hot.
    numerical_var_cols: Columnas normalizadas a [0, 1] con los límites de train.
    passthrough_cols: Columnas numéricas que pasan sin cambios.
    column_transformer: Transformador de columnas (se construye con build()).
    """

    def __init__(self, categorical_var_cols=None, numerical_var_cols=None, passthrough_cols=None):
        self.categorical_var_cols = categorical_var_cols or list(CAT_COLS)
        self.numerical_var_cols = numerical_var_cols or list(NUM_COLS)
        self.passthrough_cols = passthrough_cols or list(PASSTHROUGH_COLS)
        self.column_transformer = None

    def build(self):
        """
        Construir el preprocesamiento usando ColumnTransformer.

        Returns:
            ColumnTransformer: salida densa con todas las columnas concatenadas
            en el orden de FEATURE_COLUMNS (un transformador por columna)
        """
        transformers = []
        for col in FEATURE_COLUMNS:
            if col in self.categorical_var_cols:
                step = OneHotEncoder(handle_unknown="ignore", sparse_output=False)
            elif col in self.numerical_var_cols:
                step = MinMaxScaler()
            elif col in self.passthrough_cols:
                step = "passthrough"
            else:
                continue
            transformers.append((col, step, [col]))

        self.column_transformer = ColumnTransformer(
            transformers=transformers,
            remainder="drop",
            sparse_threshold=0.0,
            verbose_feature_names_out=False,
        )
        return self.column_transformer

    def fit(self, X_train):
        """Aprende categorías y límites min/max sólo con el conjunto de entrenamiento."""
        if self.column_transformer is None:
            self.build()
        self.column_transformer.fit(X_train)
        return self

    def transform(self, X):
        """Aplica las codificaciones aprendidas a cualquier conjunto de filas."""
        if self.column_transformer is None:
            raise RuntimeError("El preprocesador no ha sido construido. Llama a build() primero.")
        check_is_fitted(self.column_transformer)
        return self.column_transformer.transform(X)

    def feature_names(self):
        check_is_fitted(self.column_transformer)
        return list(self.column_transformer.get_feature_names_out())
