"""
Confidential Balance Protocol Constants

All protocol constants defined here for single source of truth.
"""

from typing import Final

# ==============================================================================
# EMBEDDED CURVE (GRUMPKIN)
# ==============================================================================

# Base field of Grumpkin == scalar field of BN254 (Noir `Field`)
FIELD_MODULUS: Final[int] = (
    21888242871839275222246405745257275088548364400416034343698204186575808495617
)

# Prime order of the Grumpkin group (cofactor 1) == base field of BN254
CURVE_ORDER: Final[int] = (
    21888242871839275222246405745257275088696311157297823662689037894645226208583
)

# y^2 = x^3 + CURVE_B
CURVE_B: Final[int] = FIELD_MODULUS - 17

GENERATOR_X: Final[int] = 1
GENERATOR_Y: Final[int] = 0x0000000000000002CF135E7506A45D632D270D45F1181294833FC48D823F272C

# Randomness and private keys are masked to 253 bits (always < CURVE_ORDER)
SCALAR_BITS: Final[int] = 253
SCALAR_MASK: Final[int] = (1 << SCALAR_BITS) - 1

# ==============================================================================
# WIRE FORMATS
# ==============================================================================

FIELD_ELEMENT_SIZE: Final[int] = 32
ADDRESS_SIZE: Final[int] = 20
ADDRESS_PADDING: Final[int] = FIELD_ELEMENT_SIZE - ADDRESS_SIZE   # 12
POINT_SIZE: Final[int] = 2 * FIELD_ELEMENT_SIZE                   # 64
ENCRYPTED_BALANCE_SIZE: Final[int] = 2 * POINT_SIZE               # 128

DEPOSIT_LAYOUT_SIZE: Final[int] = 416
TRANSFER_LAYOUT_SIZE: Final[int] = 704

DEPOSIT_PUBLIC_INPUT_COUNT: Final[int] = 13
TRANSFER_PUBLIC_INPUT_COUNT: Final[int] = 22

# ==============================================================================
# AMOUNTS
# ==============================================================================

# Low decimal digits dropped before proving (contract rescales by 10^6)
AMOUNT_TRUNCATED_DIGITS: Final[int] = 6

# Digit budget of a truncated amount inside the circuit
AMOUNT_MAX_DIGITS: Final[int] = 13

MAX_BALANCE: Final[int] = 10 ** AMOUNT_MAX_DIGITS - 1

# Stored unit is hundredths
BALANCE_DISPLAY_DECIMALS: Final[int] = 2

# ==============================================================================
# DISCRETE LOG
# ==============================================================================

# Upper limit on baby-step table entries. MAX_BALANCE needs about 2.24M,
# so the default bound gets a balanced table.
DEFAULT_BSGS_BABY_STEPS: Final[int] = 1 << 22

# Points per batched affine addition (one field inversion each)
BSGS_BATCH_SIZE: Final[int] = 1024

# ==============================================================================
# PROVING
# ==============================================================================

HASHING_SCHEME_KECCAK: Final[str] = "keccak"
HASHING_SCHEME_POSEIDON: Final[str] = "poseidon2"
SUPPORTED_HASHING_SCHEMES: Final[tuple] = (HASHING_SCHEME_KECCAK, HASHING_SCHEME_POSEIDON)

DEFAULT_NARGO_PATH: Final[str] = "nargo"
DEFAULT_BB_PATH: Final[str] = "bb"

# ==============================================================================
# CHAIN
# ==============================================================================

BALANCE_OF_ENC_SIGNATURE: Final[str] = "balanceOfEnc(address,address)"
DEFAULT_RPC_TIMEOUT_SEC: Final[float] = 10.0
