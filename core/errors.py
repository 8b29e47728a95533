class ErroPainel(Exception):
    """Base dos erros do painel. A mensagem é exibida ao usuário."""


class ErroPlanilha(ErroPainel):
    """Arquivo não pôde ser lido como planilha."""


class ErroValidacao(ErroPainel):
    """Seleção obrigatória ausente ou registro fora do esquema."""


class ErroAutenticacao(ErroPainel):
    pass


class ErroBackend(ErroPainel):
    """O banco (Google Sheets) recusou a leitura/gravação."""


class ErroNaoEncontrado(ErroBackend):
    pass


class ErroConfiguracao(ErroPainel):
    pass
