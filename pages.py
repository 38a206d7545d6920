# pages.py
import html
import json


def history_rows(history: dict) -> str:
    rows = []
    for key, values in history.items():
        cells = "".join(f"<td>{v:.2f}</td>" for v in values)
        rows.append(f"<tr><th>{html.escape(key)}</th>{cells}</tr>")
    return "\n".join(rows)


def index_page(history: dict, models: list, default_model: str) -> str:
    options = "".join(
        f'<option value="{html.escape(m)}"{" selected" if m == default_model else ""}>{html.escape(m)}</option>'
        for m in models
    ) or f'<option value="{html.escape(default_model)}">{html.escape(default_model)}</option>'

    return f"""
<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <title>Image Classifier</title>
    <style>
        body {{ font-family: Arial, sans-serif; margin: 20px; }}
        h1 {{ text-align: center; }}
        table {{ border-collapse: collapse; margin: 20px auto; }}
        td, th {{ border: 1px solid #ccc; padding: 4px 10px; }}
        img {{ border: 1px solid #ccc; display: block; margin: 20px auto; }}
        #result {{ text-align: center; margin-top: 20px; }}
    </style>
  </head>
  <body>
    <h1>Image Classifier</h1>
    <center>
      <form id="upload" enctype="multipart/form-data">
        <input type="file" name="file" accept=".jpg,.jpeg,.png"/>
        <select name="model">{options}</select>
        <button type="submit">Predict</button>
      </form>
      <button id="train">Train</button>
    </center>
    <div id="result">Prediction appears here!</div>

    <h2>Training History</h2>
    <table>
{history_rows(history)}
    </table>
    <img id="history" src="/plot/history" width="600">

    <script>
    const history = {json.dumps(history)};
    const uploadForm = document.getElementById('upload');
    const resultDiv = document.getElementById('result');

    uploadForm.addEventListener('submit', async (e) => {{
        e.preventDefault();
        const resp = await fetch('/predict', {{ method: 'POST', body: new FormData(uploadForm) }});
        const data = await resp.json();
        if (resp.ok) {{
            const pairs = data.class_labels.map((label, i) => `${{label}}: ${{data.prediction[0][i].toFixed(4)}}`);
            resultDiv.innerHTML = `Prediction Result: ${{pairs.join(', ')}}`;
        }} else {{
            resultDiv.innerHTML = `Error: ${{data.error}}`;
        }}
    }});

    document.getElementById('train').addEventListener('click', async () => {{
        const resp = await fetch('/train', {{ method: 'POST' }});
        const data = await resp.json();
        resultDiv.innerHTML = data.message || data.error;
    }});
    </script>
  </body>
</html>"""
