"""Name <-> index maps for the state and control vectors of a model.

The numeric layout of a model's state vector (including unused placeholder
slots) and control vector is only known once the model has been initialized.
The functions in this module recover the correspondence between state
variable paths / control names and positions in those vectors.
"""

from typing import Dict, List, Optional, Sequence

from openreplay.errors import OrderMismatch, UnresolvedPath
from openreplay.model.component import Actuator
from openreplay.model.model import Model


def create_state_variable_names_in_system_order(
    model: Model, y_index_map: Optional[Dict[int, int]] = None
) -> List[str]:
    """List state variable paths in the order they appear in the state vector.

    Components are visited in tree order. Each declared state variable takes
    the next slot of Y, stepping over slots the model reports as
    placeholders.

    Args:
        model: An initialized model.
        y_index_map: Optional dict to fill with `ordinal -> Y index`, where
            ordinal is the position of the name in the returned list.

    Returns:
        State variable paths, e.g. `["/jointset/knee/value", ...]`.

    Raises:
        ValueError: If the assignment does not cover exactly the non-placeholder
            slots of Y.
    """
    n_slots = model.num_state_slots
    names = []
    indices = []
    cursor = 0
    for comp in model.components():
        for var in comp.get_state_variable_names():
            while cursor < n_slots and model.is_placeholder_slot(cursor):
                cursor += 1
            if cursor >= n_slots:
                raise ValueError(
                    f"State variable '{comp.path}/{var}' does not fit in a state vector "
                    f"of length {n_slots}"
                )
            names.append(comp.path.rstrip("/") + "/" + var)
            indices.append(cursor)
            cursor += 1

    expected = n_slots - model.num_placeholder_slots
    if len(names) != expected or len(set(names)) != len(names):
        raise ValueError(
            f"Expected {expected} uniquely named state variables ({n_slots} slots, "
            f"{model.num_placeholder_slots} placeholders) but found {len(names)}"
        )

    if y_index_map is not None:
        y_index_map.clear()
        y_index_map.update(enumerate(indices))
    return names


def create_system_y_index_map(model: Model) -> Dict[str, int]:
    """Map each state variable path to its index in the state vector."""
    y_index_map = {}
    names = create_state_variable_names_in_system_order(model, y_index_map)
    return {name: y_index_map[i] for i, name in enumerate(names)}


def _tree_actuators(model: Model) -> List[Actuator]:
    return [c for c in model.components() if isinstance(c, Actuator)]


def create_control_names_from_model(
    model: Model, model_control_indices: Optional[List[int]] = None
) -> List[str]:
    """Control names for the actuators that apply force.

    Actuators are visited in tree order. A single-channel actuator contributes
    its name; an actuator with `n` channels contributes `name_0 ... name_{n-1}`.
    Actuators with `applies_force == False` are left out but their channels
    still count towards the raw control indices.

    Args:
        model: An initialized model.
        model_control_indices: Optional list to fill with the index in the
            model's control vector of each returned name.

    Returns:
        Control names in tree order.
    """
    names = []
    indices = []
    count = 0
    for actu in _tree_actuators(model):
        if not actu.applies_force:
            count += actu.num_controls
            continue
        if actu.num_controls == 1:
            names.append(actu.name)
            indices.append(count)
            count += 1
        else:
            for i in range(actu.num_controls):
                names.append(f"{actu.name}_{i}")
                indices.append(count)
                count += 1

    if model_control_indices is not None:
        model_control_indices[:] = indices
    return names


def check_order_system_controls(model: Model):
    """Raise if the tree order of actuators differs from the native control order.

    Raises:
        OrderMismatch: At the first position where the two orders disagree.
    """
    tree = _tree_actuators(model)
    native = model.get_actuators()
    for i in range(max(len(tree), len(native))):
        tree_path = tree[i].path if i < len(tree) else "<none>"
        native_path = native[i].path if i < len(native) else "<none>"
        if tree_path != native_path:
            raise OrderMismatch(i, tree_path, native_path)


def create_system_control_index_map(model: Model) -> Dict[str, int]:
    """Map each control name to its index in the model's control vector.

    Raises:
        OrderMismatch: If the actuator orders disagree (see
            `check_order_system_controls`).
        ValueError: If two controls share a name.
    """
    check_order_system_controls(model)
    indices = []
    names = create_control_names_from_model(model, indices)
    control_map = dict(zip(names, indices))
    if len(control_map) != len(names):
        dupes = sorted({n for n in names if names.count(n) > 1})
        raise ValueError(f"Control names are not unique: {dupes}")
    return control_map


def check_labels_match_model_states(model: Model, labels: Sequence[str]):
    """Raise if any label is not a state variable path of `model`.

    Raises:
        UnresolvedPath: Naming every offending label.
    """
    known = set(create_state_variable_names_in_system_order(model))
    unknown = [label for label in labels if label not in known]
    if unknown:
        raise UnresolvedPath(
            ", ".join(unknown), "not a state variable in the model"
        )
