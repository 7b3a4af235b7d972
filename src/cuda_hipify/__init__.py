"""
cuda-hipify Package.

A source-to-source translator converting CUDA C++ into HIP C++ while keeping
formatting, comments and macro structure intact.

Usage
-----

Simple String Conversion
^^^^^^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    import cuda_hipify
    code = "cudaMalloc(&p, n);"
    print(cuda_hipify.convert(code))
    # #include <hip/hip_runtime.h>
    # hipMalloc(&p, n);

Advanced Usage (Engine)
^^^^^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    from cuda_hipify import HipifyEngine, RuntimeConfig

    engine = HipifyEngine(RuntimeConfig(to_roc=True))
    res = engine.run(source_text, file_name="kernel.cu")

    if res.success:
        print(res.code)
        print(res.statistics.replacements, "patches")
    else:
        print(f"Errors: {res.errors}")
"""

from typing import Optional

from cuda_hipify.config import RuntimeConfig
from cuda_hipify.core.conversion_result import ConversionResult
from cuda_hipify.core.engine import HipifyEngine
from cuda_hipify.rules import RuleTables

__version__ = "0.1.0"


def convert(code: str, to_roc: bool = False, rules: Optional[RuleTables] = None) -> str:
  """
  Translates a string of CUDA code to HIP.

  This is a convenience wrapper around `HipifyEngine`. For file or directory
  conversions use the `cuda-hipify` CLI or the engine directly.

  Args:
      code (str): The CUDA source code.
      to_roc (bool): Prefer ROC library names where a rule has one.
      rules (RuleTables, optional): Preloaded rule tables. Loaded from the
          packaged files if None.

  Returns:
      str: The converted source code.

  Raises:
      ValueError: If the conversion failed.
  """
  engine = HipifyEngine(RuntimeConfig(to_roc=to_roc), rules=rules)
  result = engine.run(code)
  if not result.success:
    raise ValueError(f"Conversion failed: {'; '.join(result.errors)}")
  return result.code


__all__ = ["ConversionResult", "HipifyEngine", "RuntimeConfig", "RuleTables", "convert", "__version__"]
