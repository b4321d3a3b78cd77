"""ABI fragment for the Aave V3 UiPoolDataProviderV3 contract.

Only getReservesData is needed. Component order must match the deployed
periphery contract (v3.1+ layout, stable-rate fields removed).
"""


def _field(name: str, abi_type: str) -> dict:
    return {"internalType": abi_type, "name": name, "type": abi_type}


AGGREGATED_RESERVE_DATA_COMPONENTS = [
    _field("underlyingAsset", "address"),
    _field("name", "string"),
    _field("symbol", "string"),
    _field("decimals", "uint256"),
    _field("baseLTVasCollateral", "uint256"),
    _field("reserveLiquidationThreshold", "uint256"),
    _field("reserveLiquidationBonus", "uint256"),
    _field("reserveFactor", "uint256"),
    _field("usageAsCollateralEnabled", "bool"),
    _field("borrowingEnabled", "bool"),
    _field("isActive", "bool"),
    _field("isFrozen", "bool"),
    _field("liquidityIndex", "uint128"),
    _field("variableBorrowIndex", "uint128"),
    _field("liquidityRate", "uint128"),
    _field("variableBorrowRate", "uint128"),
    _field("lastUpdateTimestamp", "uint40"),
    _field("aTokenAddress", "address"),
    _field("variableDebtTokenAddress", "address"),
    _field("interestRateStrategyAddress", "address"),
    _field("availableLiquidity", "uint256"),
    _field("totalScaledVariableDebt", "uint256"),
    _field("priceInMarketReferenceCurrency", "uint256"),
    _field("priceOracle", "address"),
    _field("variableRateSlope1", "uint256"),
    _field("variableRateSlope2", "uint256"),
    _field("baseVariableBorrowRate", "uint256"),
    _field("optimalUsageRatio", "uint256"),
    _field("isPaused", "bool"),
    _field("isSiloedBorrowing", "bool"),
    _field("accruedToTreasury", "uint128"),
    _field("unbacked", "uint128"),
    _field("isolationModeTotalDebt", "uint128"),
    _field("flashLoanEnabled", "bool"),
    _field("debtCeiling", "uint256"),
    _field("debtCeilingDecimals", "uint256"),
    _field("borrowCap", "uint256"),
    _field("supplyCap", "uint256"),
    _field("borrowableInIsolation", "bool"),
    _field("virtualAccActive", "bool"),
    _field("virtualUnderlyingBalance", "uint128"),
]

BASE_CURRENCY_INFO_COMPONENTS = [
    _field("marketReferenceCurrencyUnit", "uint256"),
    _field("marketReferenceCurrencyPriceInUsd", "int256"),
    _field("networkBaseTokenPriceInUsd", "int256"),
    _field("networkBaseTokenPriceDecimals", "uint8"),
]

UI_POOL_DATA_PROVIDER_ABI = [
    {
        "inputs": [
            {
                "internalType": "contract IPoolAddressesProvider",
                "name": "provider",
                "type": "address",
            }
        ],
        "name": "getReservesData",
        "outputs": [
            {
                "components": AGGREGATED_RESERVE_DATA_COMPONENTS,
                "internalType": "struct IUiPoolDataProviderV3.AggregatedReserveData[]",
                "name": "",
                "type": "tuple[]",
            },
            {
                "components": BASE_CURRENCY_INFO_COMPONENTS,
                "internalType": "struct IUiPoolDataProviderV3.BaseCurrencyInfo",
                "name": "",
                "type": "tuple",
            },
        ],
        "stateMutability": "view",
        "type": "function",
    }
]
