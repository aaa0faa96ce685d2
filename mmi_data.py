"""
Description:
    Loaders for the NRSA macroinvertebrate MMI tables: the observed site samples and
    the random-forest predictions on the stream network. Both tables carry projected
    Albers coordinates (metres) and are read once, coerced to their column types and
    returned as plain DataFrames.

Inputs:
    - Observed samples CSV :
        * x, y       : Projected coordinates (m)
        * mmi        : Observed MMI score
        * mmi_class  : Condition class (Poor / Fair / Good)

    - Predictions CSV :
        * x, y       : Projected coordinates (m)
        * rfPred     : Predicted MMI score
"""

import pandas as pd

# Condition classes, worst to best
MMI_CLASS_ORDER = ["Poor", "Fair", "Good"]
MMI_CLASS_DTYPE = pd.CategoricalDtype(MMI_CLASS_ORDER, ordered=True)

SAMPLE_COLUMNS = {"x": "float64", "y": "float64", "mmi": "float64", "mmi_class": "string"}
PREDICTION_COLUMNS = {"x": "float64", "y": "float64", "rfPred": "float64"}


def _read_table(path, columns):
    """
    Read ``path`` with the required columns parsed straight into their dtypes.

    Rows with too many fields fail inside pandas; short rows come back as missing
    values and are rejected here.
    """
    # Header and first data row read positionally: a first row longer than the header
    # raises here instead of being taken for an index column
    head = pd.read_csv(path, header=None, nrows=2, dtype=str)
    header = head.iloc[0].tolist()
    missing = [c for c in columns if c not in header]
    if missing:
        raise ValueError(f"{path} missing required column(s): {', '.join(missing)}")

    df = pd.read_csv(path, dtype=columns, index_col=False)
    extra = [c for c in df.columns if c not in columns]
    if extra:
        df = df.drop(columns=extra)

    incomplete = df[list(columns)].isna().any(axis=1)
    if incomplete.any():
        rows = (incomplete[incomplete].index + 2).tolist()[:10]  # 1-based, after header
        raise ValueError(f"{path} has incomplete row(s) at line(s): {rows}")
    return df


def load_samples(path):
    """
    Read the observed MMI sample table.

    Args:
        path (str or Path): Delimited text file with x, y, mmi, mmi_class.

    Returns:
        DataFrame: One row per sample in file order, ``mmi_class`` as an ordered
        categorical (Poor < Fair < Good).
    """
    df = _read_table(path, SAMPLE_COLUMNS)

    labels = df["mmi_class"].str.strip().str.capitalize()
    unknown = sorted(set(labels) - set(MMI_CLASS_ORDER))
    if unknown:
        raise ValueError(f"{path} has unknown mmi_class value(s): {', '.join(unknown)}")
    df["mmi_class"] = labels.astype("object").astype(MMI_CLASS_DTYPE)

    print(f"[INFO] Loaded {len(df)} observed samples from {path}")
    return df


def load_predictions(path):
    """Read the predicted MMI table (about a million rows, x / y / rfPred)."""
    df = _read_table(path, PREDICTION_COLUMNS)
    print(f"[INFO] Loaded {len(df)} predicted locations from {path}")
    return df
