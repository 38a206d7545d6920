# history.py
import matplotlib
matplotlib.use("Agg")
import io
import threading
import matplotlib.pyplot as plt

# shown on the index page; /train does not fit, so there is no real history to report
SAMPLE_HISTORY = {
    "accuracy": [0.8, 0.85, 0.9],
    "val_accuracy": [0.75, 0.8, 0.85],
    "test_accuracy": [0.7, 0.78, 0.82],
    "test_loss": [0.5, 0.4, 0.35],
}

plot_cache = {
    "history": None,
}
lock = threading.Lock()


def render_history_plot(history: dict) -> bytes:
    buf = io.BytesIO()
    fig, ax1 = plt.subplots(figsize=(8, 4))

    # Left y-axis -> accuracies
    for key in ("accuracy", "val_accuracy", "test_accuracy"):
        values = history.get(key) or []
        ax1.plot(range(1, len(values) + 1), values, marker="o", markersize=3, linewidth=1, label=key)
    ax1.set_xlabel("Epoch")
    ax1.set_ylabel("Accuracy")
    ax1.grid(True)
    ax1.legend(loc="lower left")

    # Right y-axis -> loss
    loss = history.get("test_loss") or []
    if loss:
        color_loss = "tab:red"
        ax2 = ax1.twinx()
        ax2.set_ylabel("Test loss", color=color_loss)
        ax2.plot(range(1, len(loss) + 1), loss, color=color_loss, linestyle="--", label="test_loss")
        ax2.tick_params(axis="y", labelcolor=color_loss)

    fig.suptitle("Training History")
    fig.tight_layout()
    plt.savefig(buf, format="png")
    plt.close(fig)
    buf.seek(0)
    return buf.getvalue()


def history_plot() -> bytes:
    with lock:
        if plot_cache["history"] is None:
            plot_cache["history"] = render_history_plot(SAMPLE_HISTORY)
        return plot_cache["history"]
