from __future__ import annotations

from states.flow import Flow, Step
from states.validators import MIN_ANSWER_LENGTH, min_length

QUESTIONNAIRE_INTRO = (
    "📋 *Questionário Nutricional Completo*\n\n"
    "São *16 perguntas objetivas* para personalizarmos seu plano.\n\n"
    "💡 Responda com detalhes. Se algo não se aplica, escreva \"Não\"."
)

# (key, question, label shown when the record is reviewed, example answer)
QUESTIONS = [
    ("dados_basicos", "1) *Nome, idade, altura e peso atual:*", "1) Nome, idade, altura e peso atual", "Ana, 29 anos, 1,68m, 65kg"),
    ("objetivo", "2) *Objetivo principal* (ex: emagrecer, ganhar massa, saúde, exames):", "2) Objetivo principal", "Emagrecer"),
    ("doencas", "3) *Tem alguma doença diagnosticada?*", "3) Doenças diagnosticadas", "Não"),
    ("medicamentos", "4) *Usa medicamentos ou suplementos? Quais?*", "4) Medicamentos/Suplementos", "Whey e vitamina D"),
    ("cirurgias", "5) *Já fez cirurgias? Qual/Quando?*", "5) Cirurgias (qual/quando)", "Não"),
    ("exames", "6) *Possui exames recentes?* (Se sim, descreva):", "6) Exames recentes", "Hemograma de março, normal"),
    ("rotina", "7) *Como é sua rotina diária?* (horários, trabalho, sono):", "7) Rotina diária", "Trabalho das 9h às 18h, durmo às 23h"),
    ("atividade_fisica", "8) *Pratica atividade física?* Qual e quantas vezes por semana?", "8) Atividade física (qual/vezes)", "Musculação 3x por semana"),
    ("refeicoes", "9) *Quantas refeições faz por dia e como costuma comer?*", "9) Refeições por dia e como come", "4 refeições, almoço fora de casa"),
    ("alergias", "10) *Tem alergias, intolerâncias ou alimentos que evita?*", "10) Alergias/Intolerâncias/Alimentos que evita", "Intolerância à lactose"),
    ("intestino", "11) *Como funciona seu intestino?* (frequência, gases, inchaço):", "11) Intestino (frequência/gases/inchaço)", "Diário, sem inchaço"),
    ("alcool", "12) *Consome álcool?* Com que frequência?", "12) Consumo de álcool", "Só nos fins de semana"),
    ("agua", "13) *Bebe quanta água por dia?*", "13) Água por dia", "2 litros"),
    ("emocional", "14) *Tem ansiedade, compulsão ou belisca muito durante o dia?*", "14) Ansiedade/compulsão/beliscar", "Belisco à tarde"),
    ("preferencias", "15) *Que alimentos você mais gosta e menos gosta?*", "15) Alimentos que mais e menos gosta", "Gosto de frutas, não gosto de fígado"),
    ("meta_peso", "16) *Qual seu peso ideal ou meta desejada?*", "16) Peso ideal/meta", "60kg"),
]

QUESTION_LABELS = {key: label for key, _, label, _ in QUESTIONS}

QUESTIONNAIRE_FLOW = Flow(
    "questionnaire",
    [Step(key, question, min_length(MIN_ANSWER_LENGTH, example)) for key, question, _, example in QUESTIONS],
)
