"""Detected intents entity."""

from dataclasses import dataclass


@dataclass(frozen=True)
class DetectedIntents:
    """今回のターンで必要な知識モジュール

    毎ターン再計算され、永続化されない。

    Attributes:
        needs_data_query: データ照会モジュールが必要
        needs_hook_developer: フック開発モジュールが必要
        needs_transaction: トランザクションモジュールが必要
        transaction_sub_modules: 読み込むトランザクションのサブモジュール ID
        reasons: 判定理由（判定順）
    """

    needs_data_query: bool = False
    needs_hook_developer: bool = False
    needs_transaction: bool = False
    transaction_sub_modules: tuple[str, ...] | None = None
    reasons: tuple[str, ...] = ()
