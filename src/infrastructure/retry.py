"""リトライ戦略

クリップ処理の本流（トークン・マニフェスト・抽出）はリトライしない。
リトライはベストエフォートのメタデータ取得にのみ使う。
"""

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

# メタデータ取得用デコレータ（接続系エラーのみ）
metadata_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
    retry=retry_if_exception_type(httpx.TransportError),
    reraise=True,
)
