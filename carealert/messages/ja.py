"""
日本語メッセージ定数

アラート本文のテンプレートとAPIエラーメッセージを一元管理します。
テンプレートは str.format() で値を埋め込んで使用します。
"""

# ==========================================
# 共通例外 (core/exceptions.py)
# ==========================================

EXC_NOT_FOUND = "リソースが見つかりません"
EXC_UNAUTHORIZED = "認証に失敗しました"
EXC_INTERNAL_ERROR = "サーバー内部エラーが発生しました"

# ==========================================
# cron認証 (api/deps.py)
# ==========================================

CRON_SECRET_NOT_CONFIGURED = "CRON_SECRET が設定されていません"
CRON_TOKEN_INVALID = "cronトークンが正しくありません"

# ==========================================
# アラートチェック (api/v1/endpoints/alert_checks.py)
# ==========================================

ALERT_CHECK_NOT_FOUND = "アラートチェック {name} は存在しません"
ALERT_BATCH_NOT_FOUND = "アラートバッチ {name} は存在しません"
ALERT_BATCH_RUN_CREATE_FAILED = "バッチ実行レコード作成失敗: {error}"

# ==========================================
# アラート本文: 郵便番号未設定 (postal_code_check)
# ==========================================

ALERT_POSTAL_CODE_MISSING = (
    "【要設定】利用者の郵便番号が未入力です：{name}（CS ID: {cs_id}） 利用者詳細: {url}"
)

# ==========================================
# アラート本文: 退職者シフト残り (resigner_shift_check)
# ==========================================

ALERT_RESIGNER_SHIFT_REMAINING = (
    "【要修正】カイポケ削除済みスタッフがシフトに残っています：{name}（user_id: {user_id}）"
    "　シフト件数: {count} 件 / 最初の日付: {first_date}{link}"
)
ALERT_RESIGNER_SHIFT_LINK_TEXT = "シフト一覧"

# ==========================================
# アラート本文: 実施記録未提出 (shift_record_unfinished_check)
# ==========================================

ALERT_SHIFT_RECORD_UNFINISHED = (
    "【訪問記録{days}日以上エラー放置】早急に対処してください。"
    "CS ID: {cs_id} / シフトID: {shift_id} / 日時: {date} {time} / 状態: {status}"
)
SHIFT_RECORD_STATUS_NOT_CREATED = "(未作成)"

# ==========================================
# アラート本文: シフト資格 (shift_cert_check)
# ==========================================

ALERT_SHIFT_CERT_MISSING = (
    "【要確認】シフト資格未整備：{client}（CS ID: {cs_id}） {date}{time} サービス: {service} / {reason}"
)
SHIFT_CERT_NO_STAFF = "スタッフが1名も設定されていません"
SHIFT_CERT_STAFF_NO_CERT = "スタッフ{slot}（{user_id}）に有効な資格が登録されていません"
SHIFT_CERT_STAFF_KEY_MISSING = "スタッフ{slot}（{user_id}）は必要な資格キーを保有していません"
SHIFT_CERT_KEY_UNCOVERED = "必要な資格キー {key} を持つスタッフがいません"
SHIFT_CERT_STAFF_COUNT_SHORT = "必要人数 {required} 名に対して、資格 OK のスタッフは {ok} 名です"
SHIFT_CERT_CLIENT_UNKNOWN = "（利用者名なし）"
SHIFT_CERT_SERVICE_UNKNOWN = "サービス不明"

# ==========================================
# アラート本文: 行動援護 支援手順書リンク (kodoengo_plan_link_check)
# ==========================================

ALERT_KODOENGO_PLAN_LINK_MISSING = "【行動援護 支援手順書リンク無】 {link}"

# ==========================================
# アラート本文: LINE WORKS 利用者グループ (lw_user_group_missing_check)
# ==========================================

ALERT_LW_USER_GROUP_MISSING = (
    "【Lw利用者グループ生成エラー】 「{name}様　情報連携＠{cs_id}」 というラインワークスグループが"
    "存在しない（名前が間違っている）、もしくは すまーとアイさん botが追加されていない　エラーです。"
    "対応後、何か一言（テスト　等を）コメントしてください。"
)

# ==========================================
# アラート本文: 契約書・計画書不足 (cs_contract_plan_check)
# ==========================================

ALERT_CONTRACT_PLAN_MISSING = (
    "{link}には {services}等を実施していますが、必要な書類（{docs}）が利用者情報へ格納されていません。"
    "書類の作成＆サイン受領を実施してください。"
)
CONTRACT_PLAN_ANY_SERVICE = "各種サービス"
CONTRACT_PLAN_SERVICE_SUFFIX = "サービス"
CONTRACT_PLAN_DEFAULT_DOCS = "契約書・計画書"
DOC_LABEL_CONTRACT = "契約書"
DOC_LABEL_PLAN = "計画書"
DOC_LABEL_CONTRACT_OR_PLAN = "契約書／計画書"
DOC_LABEL_GENERIC = "書類({doc_id})"

# ==========================================
# アラート本文: 移動系サービス情報未設定 (shift_trans_info_check)
# ==========================================

ALERT_SHIFT_TRANS_INFO_MISSING = (
    "【移動系サービス情報未設定】移動系サービスを利用しているのに標準の移動手段／目的が設定されていません："
    "{name} 様（CS ID: {cs_id}） 標準ルート・標準移動手段・目的を登録してください。 利用者情報ページ: {url}"
)

# ==========================================
# アラート本文: イベントタスク期限超過 (event_task_check)
# ==========================================

ALERT_EVENT_TASK_OVERDUE = "【イベントタスク期限超過】 {client} の{task}が未完了です。 期限：{due_date}"
EVENT_TASK_TEMPLATE = "（{template}）"
EVENT_TASK_TEMPLATE_UNKNOWN = "テンプレ名不明"

# ==========================================
# アラート本文: 相談支援 連絡先 (kaipoke_cs_fax_check)
# ==========================================

ALERT_CS_FAX_NO_CONSULTANT = (
    "【相談支援 未登録】相談支援（care_consultant）が登録されていません：{name} 様（CS ID: {cs_id}） "
    "相談支援事業所（FAX/Email）を登録してください。 利用者情報ページ: {url}"
)
ALERT_CS_FAX_MISSING_CONTACT = (
    "【相談支援 連絡先未登録】相談支援は登録済みですが {missing} が未登録です：{name} 様（CS ID: {cs_id}） "
    "相談支援事業所: {office} FAX: {fax} Email: {email} 利用者情報ページ: {url}"
)
CS_FAX_PART_FAX = "FAX"
CS_FAX_PART_EMAIL = "Email"
CS_FAX_OFFICE_UNKNOWN = "事業所名不明"
CS_FAX_NOT_REGISTERED = "（未登録）"

# ==========================================
# 共通表示
# ==========================================

NAME_NOT_SET = "（名称未設定）"
CS_ID_UNKNOWN = "不明"
CLIENT_HONORIFIC = "{name}様"
