"""Provider callback payloads as the gateways send them (before signing)."""


def wechat_success(payment_no: str, total_fee: int = 9900, transaction_id: str = "4200000001") -> dict:
    return {
        "appid": "wx-test-app",
        "mch_id": "1900000109",
        "nonce_str": "5K8264ILTKCH16CQ2502SI8ZNMTM67VS",
        "return_code": "SUCCESS",
        "result_code": "SUCCESS",
        "out_trade_no": payment_no,
        "transaction_id": transaction_id,
        "total_fee": str(total_fee),
    }


def alipay_notification(payment_no: str, trade_status: str = "TRADE_SUCCESS", total_amount: str = "99.00") -> dict:
    return {
        "app_id": "2021000000000000",
        "notify_id": "ac05099524730693a8b330c5ecf72da9786",
        "out_trade_no": payment_no,
        "trade_no": "2024010122001",
        "trade_status": trade_status,
        "total_amount": total_amount,
        "charset": "utf-8",
    }
