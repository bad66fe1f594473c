from .exceptions import (CovarianceStructureError, InvalidParameter,
                         NotPositiveDefinite, DidNotConverge)
from .covstruct.shapes import (CovarianceStructure, IdentityMultiple, Diagonal,
                               AR1Homogeneous, AR1Heterogeneous,
                               CompoundSymmetryHomogeneous,
                               CompoundSymmetryHeterogeneous, Unstructured,
                               get_structure, build_covariance)
from .covstruct.cholesky_codec import (CholeskyCodec, decompose, pack, unpack,
                                       packing_indices, row_major_permutation,
                                       PACKING_ORDER, PACKING_VERSION)
from .covstruct.param_transform import (ParameterTransform, FreeParameters,
                                        CombinedTransform, box_constraints,
                                        sd_corr_metric, cov_metric)
from .covstruct.block_structures import KroneckerProduct, BlockDiagonal
from .covstruct.inference import (hessian_to_cov, delta_method_cov,
                                  delta_method_se, chain_rule_hessian,
                                  internal_hessian_to_cov)
from .covstruct.fitting import (make_objective, fit_structure, StructuredFit,
                                REJECTED_DEVIANCE)

__version__ = "0.1.0"
