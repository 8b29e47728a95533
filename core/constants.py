# Status de pacote (valor gravado -> rótulo exibido)
STATUS_PACOTE = {
    "open": "Aberto",
    "closed": "Fechado",
}

# Status de O.S. (valor gravado -> rótulo exibido)
STATUS_OS = {
    "todo": "A fazer",
    "pending": "Pendente",
    "done": "Concluído",
}
STATUS_OS_PADRAO = "pending"

# Planilha de importação: cabeçalho na linha 6
LINHA_CABECALHO = 6

# Cabeçalho normalizado -> campo da O.S.
COLUNAS_IMPORTACAO = {
    "oficina": "oficina",
    "o.s": "numero_os",
    "o.s.": "numero_os",
    "os": "numero_os",
    "tag": "tag",
    "nome maquina": "nome_maquina",
    "tarefa": "tarefa",
    "descricao": "tarefa",
    "responsavel": "responsavel",
}

# Oficinas canônicas (trecho procurado -> chave) e nomes de exibição
OFICINA_SYNONYMS = {
    "mecanico": ["mec"],
    "eletrico": ["eletr"],
}
OFICINA_NOMES = {
    "mecanico": "Mecânico",
    "eletrico": "Elétrico",
}

# Coleções (abas da planilha) e seus cabeçalhos
COLECAO_PACOTES = "packages"
COLECAO_SUBPACOTES = "subpackages"
COLECAO_ORDENS = "workorders"
COLECAO_LOGS = "workorderlogs"

PACOTES_HEADERS = ["id", "nome", "descricao", "status", "criado_em", "atualizado_em", "criado_por", "email_dono"]
SUBPACOTES_HEADERS = ["id", "pacote_id", "nome", "descricao", "criado_em", "atualizado_em", "criado_por"]
ORDENS_HEADERS = [
    "id", "pacote_id", "subpacote_id", "titulo", "tarefa", "status", "progresso",
    "oficina", "numero_os", "tag", "nome_maquina", "responsavel",
    "linha_origem", "ordem_importacao", "extras",
    "criado_em", "atualizado_em", "criado_por",
]
LOGS_HEADERS = ["id", "ordem_id", "mensagem", "criado_em", "criado_por"]

# Máximo de chaves livres em OrdemServico.extras
LIMITE_EXTRAS = 20
