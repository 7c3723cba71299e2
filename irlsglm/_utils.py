import numpy as np
import pandas as pd

from sklearn.utils import check_X_y

from dataclasses import fields

def _get_data(estimator,
              X,
              y,
              offset_id=None,
              weight_id=None,
              response_id=None,
              check=True):
    """
    Split `y` into response, offset and weight columns.

    Returns
    -------
    tuple
        `(X, response, offset, weight)`; `offset` and `weight` are None
        when no column is identified for them.
    """

    if check:
        X, _ = check_X_y(X, y,
                         accept_sparse=['csc', 'csr'],
                         multi_output=True,
                         y_numeric=True,
                         estimator=estimator)

    offset, weight = None, None
    if isinstance(y, pd.DataFrame):
        response = y
        if offset_id is not None:
            offset = np.asarray(y.loc[:,offset_id])
            response = response.drop(columns=[offset_id])
        if weight_id is not None:
            weight = np.asarray(y.loc[:,weight_id])
            response = response.drop(columns=[weight_id])
        # col could be 0 so check for None
        if response_id is not None:
            response = y.loc[:,response_id]
    else:
        y = np.asarray(y)
        if y.ndim == 1:
            if offset_id is not None or weight_id is not None or response_id is not None:
                raise ValueError('column identifiers need a 2-dimensional `y`')
            response = y
        else:
            keep = np.ones(y.shape[1], bool)
            if offset_id is not None:
                offset = y[:,offset_id]
                keep[offset_id] = 0
            if weight_id is not None:
                weight = y[:,weight_id]
                keep[weight_id] = 0
            if response_id is not None:
                response = y[:,response_id]
            else:
                response = y[:,keep]

    response = np.squeeze(np.asarray(response, float))
    if response.ndim != 1:
        raise ValueError('expecting a single response column')
    return X, response, offset, weight

def _parent_dataclass_from_child(cls,
                                 parent_dict,
                                 **modified_args):
    _fields = [f.name for f in fields(cls)]
    _cls_args = {k:parent_dict[k] for k in parent_dict.keys() if k in _fields}
    _cls_args.update(**modified_args)
    return cls(**_cls_args)
