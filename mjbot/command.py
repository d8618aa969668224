"""Chat commands, reply templates and text helpers shared by router and relay."""

IMAGINE_PREFIX = "/imagine "
CHANGE_PREFIX = "/up "
HELP_COMMAND = "/help"

HELP_TEXT = (
    "欢迎使用MJ机器人\n"
    "------------------------------\n"
    "🎨 AI绘图命令\n"
    "输入: /imagine prompt\n"
    "prompt 即你提的绘画需求\n"
    "------------------------------\n"
    "📕 prompt附加参数 \n"
    "1.解释: 在prompt后携带的参数, 可以使你的绘画更别具一格\n"
    "2.示例: /imagine prompt --ar 16:9\n"
    "3.使用: 需要使用--key value, key和value空格隔开, 多个附加参数空格隔开\n"
    "------------------------------\n"
    "📗 附加参数列表\n"
    "1. --v 版本 1,2,3,4,5 默认5, 不可与niji同用\n"
    "2. --niji 卡通版本 空或5 默认空, 不可与v同用\n"
    "3. --ar 横纵比 n:n 默认1:1\n"
    "4. --q 清晰度 .25 .5 1 2 分别代表: 一般,清晰,高清,超高清,默认1\n"
    "5. --style 风格 (4a,4b,4c)v4可用 (expressive,cute)niji5可用\n"
    "6. --s 风格化 1-1000 (625-60000)v3\n"
    "------------------------------\n"
    "🖼 私聊发送图片即可获取图片的 prompt"
)

# --- Router replies ---
MSG_SENSITIVE = "⚠ 可能包含违禁词, 请检查"
MSG_QUEUE_FULL = "⏰ {description}"
MSG_SUBMIT_FAILED = "❌ {description}"
MSG_SUBMIT_ERROR = "MJ服务异常, 请稍后再试"

# --- Relay replies ---
MSG_TASK_SUBMITTED = "✅ 您的任务已提交\n✨ {description}\n🚀 正在快速处理中，请稍后"
MSG_TASK_FAILED = "❌ 任务执行失败\n✨ {description}\n📒 失败原因: {fail_reason}"
MSG_UPSCALE_DONE = "🎨 图片放大成功，用时: {duration}\n✨ {description}"
MSG_DESCRIBE_DONE = (
    "🎨 获取图片信息成功，用时: {duration}\n✨ Prompt: {prompt}\n✨✨ 图片地址: {image_url}"
)
MSG_DESCRIBE_PROMPT_EN = "\n✨ Prompt(EN): {prompt_en}"
MSG_DRAW_DONE = (
    "🎨 {verb}成功，用时 {duration}\n"
    "✨ Prompt: {prompt}\n"
    "📨 任务ID: {task_id}\n"
    "🪄 放大 U1～U4，变换 V1～V4\n"
    "✏️ 使用[/up 任务ID 操作]\n"
    "/up {task_id} U1"
)


def mention(sender_name: str, in_group: bool) -> str:
    """Title prefix addressing the sender; group replies only."""
    return f"@{sender_name} \n" if in_group else ""


def format_duration(milliseconds: int) -> str:
    """Render an elapsed time as e.g. "1小时2分3秒" or "850毫秒"."""
    if milliseconds < 1000:
        return f"{max(milliseconds, 0)}毫秒"
    seconds = milliseconds // 1000
    hours, seconds = divmod(seconds, 3600)
    minutes, seconds = divmod(seconds, 60)
    parts = []
    if hours:
        parts.append(f"{hours}小时")
    if minutes:
        parts.append(f"{minutes}分")
    if seconds or not parts:
        parts.append(f"{seconds}秒")
    return "".join(parts)
