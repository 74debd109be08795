from typing import Any, Optional, Union

import torch

def get_torch_device(device: Union[str, torch.device]) -> torch.device:
    """
    Returns a valid PyTorch device based on user preference and availability.

    Args:
        device: A string indicating the preferred device, e.g., 'cpu' or 'cuda'.

    Returns:
        A torch.device object corresponding to the chosen or available device.
    """
    if isinstance(device, torch.device):
        return device
    # Use 'cpu' if explicitly requested, otherwise prefer 'cuda' if available
    return torch.device(device) if device == 'cpu' else (
                torch.device('cuda') if torch.cuda.is_available() else torch.device('cpu')
            )

def convert_numeric_strings(value: Any) -> Any:
    """
    Converts strings holding numbers or booleans (as they may come from YAML or
    environment overrides) into Python values. Other values are returned unchanged.

    Args:
        value: A raw configuration value.

    Returns:
        int, float or bool when the string represents one, otherwise the input.
    """
    if not isinstance(value, str):
        return value

    stripped = value.strip()
    lowered = stripped.lower()
    if lowered in ('true', 'false'):
        return lowered == 'true'
    if lowered in ('none', 'null'):
        return None
    try:
        return int(stripped)
    except ValueError:
        pass
    try:
        return float(stripped)
    except ValueError:
        return value

def optional_path(value: Any) -> Optional[str]:
    """Returns a configured path, treating empty values as unset."""
    value = convert_numeric_strings(value)
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return str(value)
