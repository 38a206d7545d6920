# model_builder.py
from tensorflow import keras

INPUT_SHAPE = (224, 224, 3)
NUM_CLASSES = 3
HIDDEN_UNITS = 128
DROPOUT_RATE = 0.2


def build_model(input_shape=INPUT_SHAPE, num_classes: int = NUM_CLASSES) -> keras.Model:
    """Flatten -> Dense(128, relu) -> Dropout(0.2) -> Dense(num_classes, softmax), compiled, untrained."""
    model = keras.Sequential([
        keras.Input(shape=tuple(input_shape)),
        keras.layers.Flatten(),
        keras.layers.Dense(HIDDEN_UNITS, activation="relu"),
        keras.layers.Dropout(DROPOUT_RATE),
        keras.layers.Dense(num_classes, activation="softmax"),
    ])

    model.compile(
        optimizer="adam",
        loss="sparse_categorical_crossentropy",
        metrics=["accuracy"],
    )
    return model


def output_units(model: keras.Model) -> int:
    return int(model.output_shape[-1])
