from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

from telegram.error import BadRequest, Forbidden

from bot.engines import QUESTIONNAIRE, REGISTRATION, WEIGHT, get_engine
from bot.handlers import admin as admin_handlers
from bot.handlers import chat, files as file_handlers, patient as patient_handlers, questionnaire, weight as weight_handlers
from bot.handlers.menu import cancel_command, menu_command
from bot.router import LIMIT_REACHED, route_media, route_text
from services import faq, files, food_records, patients, reminders
from services.chat_relay import ADMIN_SENT_CONFIRMATION, CHAT_ERROR, SENT_CONFIRMATION
from services.config import settings
from states.questionnaire import QUESTIONS

REGISTRATION_ANSWERS = ["Maria Souza", "34", "F", "65.5", "168", "L", "Emagrecer", "Lactose"]


def sent_texts(bot, chat_id):
    return [
        call.kwargs["text"]
        for call in bot.send_message.await_args_list
        if str(call.kwargs["chat_id"]) == str(chat_id)
    ]


async def test_unknown_user_is_registered_through_the_router(context, make_update, bot):
    await route_text(make_update(text="oi"), context)
    assert get_engine(context, REGISTRATION).is_active(1001)
    assert any("Passo 1 de 8" in t for t in sent_texts(bot, 1001))

    for answer in REGISTRATION_ANSWERS:
        await route_text(make_update(text=answer), context)

    patient = patients.get_patient(1001)
    assert patient.name == "Maria Souza"
    assert patient.activity_level == "light"
    assert patient.restrictions == "Lactose"
    assert not get_engine(context, REGISTRATION).is_active(1001)
    assert any("Cadastro concluído, Maria" in t for t in sent_texts(bot, 1001))
    assert any("Novo Paciente" in t for t in sent_texts(bot, 999))
    assert len(reminders.get_patient_reminders(1001)) == 3


async def test_profile_edit_does_not_duplicate_renewal_reminders(context, make_update, bot):
    await route_text(make_update(text="oi"), context)
    for answer in REGISTRATION_ANSWERS:
        await route_text(make_update(text=answer), context)
    await get_engine(context, REGISTRATION).start(1001)
    for answer in REGISTRATION_ANSWERS:
        await route_text(make_update(text=answer), context)

    assert len(reminders.get_patient_reminders(1001)) == 3
    assert any("Cadastro atualizado" in t for t in sent_texts(bot, 1001))


async def test_invalid_weight_then_valid(context, make_update, make_patient, bot):
    make_patient(1001, weight=65.5)
    await weight_handlers.ask_weight(make_update(), context)
    assert get_engine(context, WEIGHT).is_active(1001)

    await route_text(make_update(text="abc"), context)
    assert "Use apenas números" in sent_texts(bot, 1001)[-1]
    assert get_engine(context, WEIGHT).is_active(1001)

    await route_text(make_update(text="64"), context)
    assert patients.get_patient(1001).weight == 64.0
    assert "Peso registrado" in sent_texts(bot, 1001)[-1]


async def test_inactive_plan_gets_trial_before_feature(context, make_update, make_patient, bot):
    make_patient(1001, plan_status="inactive")
    await weight_handlers.ask_weight(make_update(), context)
    assert patients.get_patient(1001).plan_status == "active"
    assert any("Plano liberado para testes" in t for t in sent_texts(bot, 1001))
    assert get_engine(context, WEIGHT).is_active(1001)


async def test_questionnaire_blocked_when_month_already_filled(context, make_update, make_patient, bot):
    make_patient(1001)
    food_records.save_food_record(1001, {"objetivo": "Emagrecer"})
    await questionnaire.begin_questionnaire(make_update(), context)
    assert not get_engine(context, QUESTIONNAIRE).is_active(1001)
    assert "Questionário Já Enviado" in sent_texts(bot, 1001)[-1]


async def test_questionnaire_limit_on_save_is_reported(context, make_update, make_patient, bot):
    make_patient(1001)
    await questionnaire.begin_questionnaire(make_update(), context)
    # another record lands while the questionnaire is open
    food_records.save_food_record(1001, {"objetivo": "Emagrecer"})

    for _, _, _, example in QUESTIONS:
        await route_text(make_update(text=example), context)

    assert not get_engine(context, QUESTIONNAIRE).is_active(1001)
    assert sent_texts(bot, 1001)[-1] == LIMIT_REACHED
    assert len(food_records.list_food_records(1001)) == 1


async def test_questionnaire_completion_notifies_admin(context, make_update, make_patient, bot):
    make_patient(1001)
    await questionnaire.begin_questionnaire(make_update(), context)
    for _, _, _, example in QUESTIONS:
        await route_text(make_update(text=example), context)

    assert len(food_records.list_food_records(1001)) == 1
    assert any("Novo Questionário Alimentar" in t for t in sent_texts(bot, 999))
    assert "Questionário enviado" in sent_texts(bot, 1001)[-1]


async def test_chat_takes_priority_over_weight_input(context, make_update, make_patient, bot):
    make_patient(1001)
    await weight_handlers.ask_weight(make_update(), context)
    await chat.start_chat(make_update(), context)

    await route_text(make_update(text="Posso comer pão?"), context)

    assert any("Posso comer pão?" in t for t in sent_texts(bot, 999))
    assert get_engine(context, WEIGHT).is_active(1001)


async def test_admin_reply_is_one_message(context, make_update, make_patient, bot):
    make_patient(1001)
    admin_update = make_update(user_id=999)
    await chat.start_admin_reply(admin_update, context, 1001)

    await route_text(make_update(user_id=999, text="Pode sim, integral."), context)

    assert any("Pode sim, integral." in t for t in sent_texts(bot, 1001))
    assert context.bot_data["chat_relay"].reply_target(999) is None


async def test_broadcast_to_group(context, make_update, make_patient, bot, mocker):
    mocker.patch("services.admin.asyncio.sleep", new_callable=AsyncMock)
    make_patient(1001)
    make_patient(1002, name="João")
    await admin_handlers.ask_broadcast(make_update(user_id=999), context, "all")

    await route_text(make_update(user_id=999, text="Consultório fechado amanhã"), context)

    assert any("Consultório fechado amanhã" in t for t in sent_texts(bot, 1001))
    assert any("Consultório fechado amanhã" in t for t in sent_texts(bot, 1002))
    assert "broadcast_group" not in context.user_data
    assert "Sucesso: 2" in sent_texts(bot, 999)[-1]


async def test_non_admin_cannot_open_admin_panel(context, make_update, make_patient, bot):
    make_patient(1001)
    await admin_handlers.admin_command(make_update(), context)
    assert "Acesso negado" in sent_texts(bot, 1001)[-1]


async def test_cancel_ends_active_flow(context, make_update, make_patient, bot):
    make_patient(1001)
    await weight_handlers.ask_weight(make_update(), context)
    await cancel_command(make_update(), context)
    assert not get_engine(context, WEIGHT).is_active(1001)
    assert "Operação cancelada" in sent_texts(bot, 1001)[-1]


async def test_reset_patient_command(context, make_update, make_patient, bot):
    make_patient(1001)
    update = make_update(user_id=999)
    context.args = ["1001"]
    await admin_handlers.reset_patient_command(update, context)
    assert patients.get_patient(1001) is None

    context.args = ["abc"]
    await admin_handlers.reset_patient_command(update, context)
    assert "Uso:" in sent_texts(bot, 999)[-1]


async def _strict_markdown(**kwargs):
    # Telegram refuses legacy Markdown with an unbalanced, unescaped underscore
    if kwargs.get("parse_mode") and kwargs["text"].replace("\\_", "").count("_") % 2:
        raise BadRequest("Can't parse entities")


async def test_chat_message_with_underscore_reaches_admin(context, make_update, make_patient, bot):
    make_patient(1001)
    bot.send_message.side_effect = _strict_markdown
    await chat.start_chat(make_update(), context)

    await route_text(make_update(text="meu email é ana_souza@x.com"), context)

    to_admin = sent_texts(bot, 999)
    assert len(to_admin) == 1
    assert "ana\\_souza@x.com" in to_admin[0]
    assert sent_texts(bot, 1001)[-1] == SENT_CONFIRMATION["text"]


async def test_undelivered_chat_message_is_reported_to_patient(context, make_update, make_patient, bot):
    make_patient(1001)
    await chat.start_chat(make_update(), context)

    async def admin_unreachable(**kwargs):
        if str(kwargs["chat_id"]) == "999":
            raise Forbidden("bot was blocked by the user")

    bot.send_message.side_effect = admin_unreachable
    await route_text(make_update(text="Oi, tudo bem?"), context)

    assert sent_texts(bot, 1001)[-1] == CHAT_ERROR


async def test_photo_caption_falls_back_to_plain_text(context, make_update, make_patient, bot):
    make_patient(1001)
    await chat.start_chat(make_update(), context)
    bot.send_photo.side_effect = [BadRequest("Can't parse entities"), None]
    update = make_update()
    update.message.photo = [MagicMock(file_id="small"), MagicMock(file_id="AgAD-big")]
    update.message.caption = "almoço *hoje"

    await route_media(update, context)

    first, second = bot.send_photo.await_args_list
    assert first.kwargs["photo"] == second.kwargs["photo"] == "AgAD-big"
    assert "parse_mode" not in second.kwargs
    assert sent_texts(bot, 1001)[-1] == SENT_CONFIRMATION["photo"]


async def test_admin_reply_text_is_escaped(context, make_update, make_patient, bot):
    make_patient(1001)
    bot.send_message.side_effect = _strict_markdown
    await chat.start_admin_reply(make_update(user_id=999), context, 1001)

    await route_text(make_update(user_id=999, text="use o app my_fitness"), context)

    assert any("my\\_fitness" in t for t in sent_texts(bot, 1001))
    assert sent_texts(bot, 999)[-1] == ADMIN_SENT_CONFIRMATION["text"]


async def test_questionnaire_answers_with_markdown_reach_admin(context, make_update, make_patient, bot):
    make_patient(1001)
    bot.send_message.side_effect = _strict_markdown
    await questionnaire.begin_questionnaire(make_update(), context)
    answers = [example for _, _, _, example in QUESTIONS]
    answers[3] = "Whey e vitamina_D3 *manipulada"
    for answer in answers:
        await route_text(make_update(text=answer), context)

    notification = [t for t in sent_texts(bot, 999) if "Novo Questionário Alimentar" in t]
    assert len(notification) == 1
    assert "vitamina\\_D3 \\*manipulada" in notification[0]


async def test_expired_plan_is_sent_to_renewal(context, make_update, make_patient, bot):
    make_patient(1001, plan_status="active", plan_end_date=datetime.now() - timedelta(days=2))

    await weight_handlers.ask_weight(make_update(), context)

    assert not get_engine(context, WEIGHT).is_active(1001)
    assert "Plano Vencido" in sent_texts(bot, 1001)[-1]
    assert patients.get_patient(1001).plan_end_date < datetime.now()


async def test_expired_plan_cannot_start_questionnaire(context, make_update, make_patient, bot):
    make_patient(1001, plan_status="active", plan_end_date=datetime.now() - timedelta(days=2))
    await questionnaire.begin_questionnaire(make_update(), context)
    assert not get_engine(context, QUESTIONNAIRE).is_active(1001)


async def test_plan_request_reaches_admin(context, make_update, make_patient, bot):
    make_patient(1001)
    await patient_handlers.request_plan(make_update(), context, "quarterly")

    to_admin = [call for call in bot.send_message.await_args_list if str(call.kwargs["chat_id"]) == "999"]
    assert len(to_admin) == 1
    assert "Plano Trimestral" in to_admin[0].kwargs["text"]
    buttons = [b.callback_data for row in to_admin[0].kwargs["reply_markup"].inline_keyboard for b in row]
    assert "admin_activate_1001_quarterly" in buttons
    assert "Pedido enviado" in sent_texts(bot, 1001)[-1]


async def test_plan_request_without_admin_reports_failure(context, make_update, make_patient, bot, mocker):
    make_patient(1001)
    mocker.patch.object(settings, "admin_telegram_id", None)
    await patient_handlers.request_plan(make_update(), context, "monthly")
    assert sent_texts(bot, 1001)[-1] == patient_handlers.RENEWAL_REQUEST_FAILED


async def test_activate_plan_command(context, make_update, make_patient, bot):
    make_patient(1001, plan_status="active", plan_end_date=datetime.now() - timedelta(days=3))
    update = make_update(user_id=999)

    context.args = ["1001", "quarterly"]
    await admin_handlers.activate_plan_command(update, context)

    patient = patients.get_patient(1001)
    assert patients.is_plan_active(patient)
    assert (patient.plan_end_date - datetime.now()).days in (89, 90)
    assert any("Plano Ativado" in t for t in sent_texts(bot, 1001))
    assert "ativo até" in sent_texts(bot, 999)[-1]
    assert len(reminders.get_patient_reminders(1001)) == 3


async def test_activate_plan_command_usage(context, make_update, make_patient, bot):
    make_patient(1001)
    update = make_update(user_id=999)
    for args in ([], ["abc"], ["1001", "vip"], ["1001", "0"]):
        context.args = args
        await admin_handlers.activate_plan_command(update, context)
        assert sent_texts(bot, 999)[-1] == admin_handlers.ACTIVATE_USAGE

    context.args = ["404"]
    await admin_handlers.activate_plan_command(update, context)
    assert "Nenhum cadastro" in sent_texts(bot, 999)[-1]


async def test_activate_plan_command_is_admin_only(context, make_update, make_patient, bot):
    make_patient(1001, plan_status="inactive")
    context.args = ["1001"]
    await admin_handlers.activate_plan_command(make_update(), context)
    assert patients.get_patient(1001).plan_status == "inactive"
    assert "Acesso negado" in sent_texts(bot, 1001)[-1]


async def test_activation_button_extends_plan(context, make_update, make_patient, bot):
    make_patient(1001)
    before = patients.get_patient(1001).plan_end_date
    await admin_handlers.activate_requested_plan(make_update(user_id=999), context, (1001, "monthly"))
    assert patients.get_patient(1001).plan_end_date == before + timedelta(days=30)


async def test_faq_question_is_answered(context, make_update, make_patient, bot):
    make_patient(1001)
    await route_text(make_update(text="como renovar meu plano?"), context)
    assert sent_texts(bot, 1001)[-1] == faq.get_topic("planos").answer


async def test_faq_needs_registration(context, make_update, bot):
    await route_text(make_update(text="como renovar meu plano?"), context)
    assert get_engine(context, REGISTRATION).is_active(1001)


async def test_requested_document_is_saved_and_forwarded(context, make_update, make_patient, bot):
    make_patient(1001)
    await file_handlers.request_upload(make_update(), context, files.DOCUMENT)
    assert context.bot_data["file_uploads"].pending(1001) == files.DOCUMENT

    update = make_update()
    update.message.document = MagicMock(file_id="BQAD-exame", file_name="exame_sangue.pdf")
    update.message.caption = "hemograma"
    await route_media(update, context)

    saved = files.list_patient_files(1001, files.DOCUMENT)
    assert [(r.file_id, r.file_name, r.caption) for r in saved] == [("BQAD-exame", "exame_sangue.pdf", "hemograma")]
    forwarded = bot.send_document.await_args
    assert str(forwarded.kwargs["chat_id"]) == "999"
    assert forwarded.kwargs["document"] == "BQAD-exame"
    assert "exame\\_sangue.pdf" in forwarded.kwargs["caption"]
    assert sent_texts(bot, 1001)[-1] == files.UPLOAD_SAVED[files.DOCUMENT]
    assert context.bot_data["file_uploads"].pending(1001) is None


async def test_media_without_request_is_not_stored(context, make_update, make_patient, bot):
    make_patient(1001)
    update = make_update()
    update.message.photo = [MagicMock(file_id="AgAD-1")]
    await route_media(update, context)
    assert files.list_patient_files(1001) == []


async def test_patients_only_get_their_own_files(context, make_update, make_patient, bot):
    make_patient(1001)
    row = files.save_patient_file(2002, files.FOOD_DIARY, "photo", "AgAD-other")

    await file_handlers.send_file(make_update(), context, row.id)
    bot.send_photo.assert_not_awaited()
    assert "Arquivo não encontrado" in sent_texts(bot, 1001)[-1]

    await file_handlers.send_file(make_update(user_id=999), context, row.id)
    assert bot.send_photo.await_args.kwargs["photo"] == "AgAD-other"


async def test_menu_drops_pending_upload(context, make_update, make_patient, bot):
    make_patient(1001)
    await file_handlers.request_upload(make_update(), context, files.FOOD_DIARY)
    await menu_command(make_update(), context)
    assert context.bot_data["file_uploads"].pending(1001) is None
