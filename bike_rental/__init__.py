from sklearn.ensemble import GradientBoostingClassifier

# Configuración fija del experimento
DATA_PATH = "bike_sharing.csv"
TEST_SIZE = 0.1
RANDOM_STATE = 0

MODEL_CONFIGS = {
    "fast_tree": {
        "estimator": GradientBoostingClassifier(
            n_estimators=100,
            learning_rate=0.2,
            max_depth=None,
            max_leaf_nodes=20,
            min_samples_leaf=10,
            random_state=RANDOM_STATE,
        ),
        "params": {},
        "description": "Boosted decision trees for binary rental type",
    },
}
